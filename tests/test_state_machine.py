import pytest
from lingolife.review.state_machine import ReviewCard, ReviewStateMachine, ReviewStep


def make_cards(*ids):
    return [{"id": word_id, "term": f"term-{word_id}", "translation": "释义"} for word_id in ids]


def test_state_machine_initialization():
    sm = ReviewStateMachine()
    assert sm.get_current_step() == ReviewStep.LOADING
    assert sm.current_card is None
    assert sm.progress() == 0


def test_load_filters_reviewed_words_and_keeps_order():
    sm = ReviewStateMachine()
    step = sm.load(make_cards("a", "b", "c", "d"), ["b", "d"])

    assert step == ReviewStep.ACTIVE
    assert [card.id for card in sm.state.queue] == ["a", "c"]
    assert sm.current_card.id == "a"
    assert sm.state.flipped is False


def test_load_with_everything_reviewed_is_empty():
    sm = ReviewStateMachine()
    assert sm.load(make_cards("a"), ["a"]) == ReviewStep.EMPTY
    assert sm.load([], []) == ReviewStep.EMPTY
    assert sm.current_card is None


def test_know_then_dont_know_on_two_cards():
    sm = ReviewStateMachine()
    sm.load(make_cards("A", "B"), [])

    resolved = sm.know()
    assert resolved.id == "A"
    assert sm.current_card.id == "B"
    assert sm.progress() == 50

    resolved = sm.dont_know()
    assert resolved.id == "B"
    assert sm.state.flipped is True
    assert sm.current_card.id == "B"

    assert sm.know() is None
    assert sm.is_finished()
    assert sm.summary() == {"known_count": 1, "unknown_count": 1, "total": 2}


def test_know_after_flip_does_not_count_again():
    sm = ReviewStateMachine()
    sm.load(make_cards("A", "B"), [])

    sm.dont_know()
    assert sm.know() is None

    assert sm.state.known_count == 0
    assert sm.state.unknown_count == 1
    assert sm.current_card.id == "B"
    assert sm.state.flipped is False


def test_dont_know_twice_is_noop():
    sm = ReviewStateMachine()
    sm.load(make_cards("A"), [])

    assert sm.dont_know() is not None
    assert sm.dont_know() is None
    assert sm.state.unknown_count == 1
    assert sm.state.position == 0


@pytest.mark.parametrize("size", [1, 3, 7])
def test_queue_finishes_after_one_resolution_per_card(size):
    sm = ReviewStateMachine()
    sm.load(make_cards(*[str(i) for i in range(size)]), [])

    for _ in range(size):
        assert sm.get_current_step() == ReviewStep.ACTIVE
        sm.know()

    assert sm.is_finished()
    summary = sm.summary()
    assert summary["known_count"] + summary["unknown_count"] == summary["total"] == size


def test_actions_outside_active_are_ignored():
    sm = ReviewStateMachine()
    assert sm.know() is None
    assert sm.dont_know() is None
    assert sm.get_current_step() == ReviewStep.LOADING

    sm.load(make_cards("A"), [])
    sm.know()
    assert sm.know() is None
    assert sm.summary()["known_count"] == 1


def test_progress_rounds_half_up():
    sm = ReviewStateMachine()
    sm.load(make_cards(*[str(i) for i in range(8)]), [])

    # 1/8 = 12.5%
    sm.know()
    assert sm.progress() == 13

    sm.load(make_cards("a", "b", "c"), [])
    sm.know()
    assert sm.progress() == 33
    sm.know()
    assert sm.progress() == 67


def test_restart_keeps_queue_and_resets_tallies():
    sm = ReviewStateMachine()
    sm.load(make_cards("A", "B"), [])
    sm.know()
    sm.dont_know()
    sm.know()
    assert sm.is_finished()

    sm.restart()
    assert sm.get_current_step() == ReviewStep.ACTIVE
    assert sm.current_card.id == "A"
    assert sm.summary() == {"known_count": 0, "unknown_count": 0, "total": 2}


def test_restart_with_empty_queue_is_noop():
    sm = ReviewStateMachine()
    sm.load([], [])
    sm.restart()
    assert sm.get_current_step() == ReviewStep.EMPTY


def test_card_from_word_model(memory_repo):
    word = memory_repo.create_word("alice", {
        "term": "cat", "translation": "猫", "phonetic": "/kæt/"
    })
    card = ReviewCard.from_word(word)
    assert card == ReviewCard(id=word.id, term="cat", phonetic="/kæt/", translation="猫", definition="")


def test_state_data():
    sm = ReviewStateMachine()
    sm.load(make_cards("A", "B"), [])
    sm.dont_know()

    data = sm.get_state_data()
    assert data["step"] == "active"
    assert data["flipped"] is True
    assert data["current_word_id"] == "A"
    assert data["total"] == 2
