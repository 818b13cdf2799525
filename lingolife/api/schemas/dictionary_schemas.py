from pydantic import BaseModel
from typing import List

class DictionaryExample(BaseModel):
    key: str
    value: List[str] = []

class DictionaryResult(BaseModel):
    term: str
    phonetic: str = ""
    uk_phonetic: str = ""
    us_phonetic: str = ""
    part_of_speech: str = ""
    translation: str = ""
    definition: str = ""
    examples: List[DictionaryExample] = []
    source: str
