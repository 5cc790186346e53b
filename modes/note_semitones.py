"""Note <-> semitone number.

Forward ("C#:fwd"): shown "C#/Db", answer 1.
Reverse ("C#:rev"): shown 1, answer C# or Db.
"""

from models import PracticeGroup
from modes.base import PracticeMode


# (name, display, semitone, accepted spellings)
NOTES = [
    ("C", "C", 0, ("c",)),
    ("C#", "C#/Db", 1, ("c#", "db")),
    ("D", "D", 2, ("d",)),
    ("D#", "D#/Eb", 3, ("d#", "eb")),
    ("E", "E", 4, ("e",)),
    ("F", "F", 5, ("f",)),
    ("F#", "F#/Gb", 6, ("f#", "gb")),
    ("G", "G", 7, ("g",)),
    ("G#", "G#/Ab", 8, ("g#", "ab")),
    ("A", "A", 9, ("a",)),
    ("A#", "A#/Bb", 10, ("a#", "bb")),
    ("B", "B", 11, ("b",)),
]

NATURAL_NOTES = ["C", "D", "E", "F", "G", "A", "B"]


class NoteSemitonesMode(PracticeMode):
    name = "note_semitones"
    title = "Note ↔ Semitones"

    def __init__(self):
        self._notes = {name: (display, num, accepts) for name, display, num, accepts in NOTES}
        self._items = [f"{name}:{d}" for name, *_ in NOTES for d in ("fwd", "rev")]

    def item_ids(self) -> list[str]:
        return list(self._items)

    def groups(self) -> list[PracticeGroup]:
        accidentals = [n for n, *_ in NOTES if n not in NATURAL_NOTES]
        return [
            PracticeGroup(
                index=0,
                label="Naturals → number",
                item_ids=[f"{n}:fwd" for n in NATURAL_NOTES],
            ),
            PracticeGroup(
                index=1,
                label="Number → naturals",
                item_ids=[f"{n}:rev" for n in NATURAL_NOTES],
            ),
            PracticeGroup(
                index=2,
                label="Sharps and flats",
                item_ids=[f"{n}:{d}" for n in accidentals for d in ("fwd", "rev")],
            ),
        ]

    def _parse(self, item_id: str) -> tuple[str, str]:
        self._require_item(item_id)
        note, direction = item_id.split(":")
        return note, direction

    def get_question(self, item_id: str) -> str:
        note, direction = self._parse(item_id)
        display, num, _ = self._notes[note]
        if direction == "fwd":
            return f"{display} = ? semitones"
        return f"{num} = ?"

    def check_answer(self, item_id: str, user_input: str) -> tuple[bool, str]:
        note, direction = self._parse(item_id)
        display, num, accepts = self._notes[note]
        answer = user_input.strip()
        if direction == "fwd":
            return answer == str(num), str(num)
        return answer.lower() in accepts, display

    def correct_answer(self, item_id: str) -> str:
        note, direction = self._parse(item_id)
        if direction == "fwd":
            return str(self._notes[note][1])
        return note

    def answer_choices(self) -> list[str]:
        return list(NATURAL_NOTES)
