"""Interval name <-> semitone count.

Forward ("m3:fwd"): shown m3, answer 3.
Reverse ("m3:rev"): shown 3, answer m3. Quality letters are case-sensitive
(m3 is not M3).
"""

from models import PracticeGroup
from modes.base import PracticeMode


# (abbrev, full name, semitones, alternative spellings)
INTERVALS = [
    ("m2", "minor 2nd", 1, ()),
    ("M2", "Major 2nd", 2, ()),
    ("m3", "minor 3rd", 3, ()),
    ("M3", "Major 3rd", 4, ()),
    ("P4", "Perfect 4th", 5, ()),
    ("TT", "Tritone", 6, ("A4", "d5")),
    ("P5", "Perfect 5th", 7, ()),
    ("m6", "minor 6th", 8, ()),
    ("M6", "Major 6th", 9, ()),
    ("m7", "minor 7th", 10, ()),
    ("M7", "Major 7th", 11, ()),
    ("P8", "Octave", 12, ()),
]

# Adjacent pairs by distance, easiest first
DISTANCE_GROUPS = [
    ("m2", "M2"),
    ("m3", "M3"),
    ("P4", "TT"),
    ("P5", "m6"),
    ("M6", "m7"),
    ("M7", "P8"),
]


class IntervalSemitonesMode(PracticeMode):
    name = "interval_semitones"
    title = "Interval ↔ Semitones"

    def __init__(self):
        self._intervals = {abbrev: (full, num, alts) for abbrev, full, num, alts in INTERVALS}
        self._items = [f"{abbrev}:{d}" for abbrev, *_ in INTERVALS for d in ("fwd", "rev")]

    def item_ids(self) -> list[str]:
        return list(self._items)

    def groups(self) -> list[PracticeGroup]:
        return [
            PracticeGroup(
                index=i,
                label=" & ".join(pair),
                item_ids=[f"{abbrev}:{d}" for abbrev in pair for d in ("fwd", "rev")],
            )
            for i, pair in enumerate(DISTANCE_GROUPS)
        ]

    def _parse(self, item_id: str) -> tuple[str, str]:
        self._require_item(item_id)
        abbrev, direction = item_id.split(":")
        return abbrev, direction

    def get_question(self, item_id: str) -> str:
        abbrev, direction = self._parse(item_id)
        full, num, _ = self._intervals[abbrev]
        if direction == "fwd":
            return f"{abbrev} ({full}) = ? semitones"
        return f"{num} semitones = ?"

    def check_answer(self, item_id: str, user_input: str) -> tuple[bool, str]:
        abbrev, direction = self._parse(item_id)
        _, num, alts = self._intervals[abbrev]
        answer = user_input.strip()
        if direction == "fwd":
            return answer == str(num), str(num)
        return answer == abbrev or answer in alts, abbrev

    def correct_answer(self, item_id: str) -> str:
        abbrev, direction = self._parse(item_id)
        if direction == "fwd":
            return str(self._intervals[abbrev][1])
        return abbrev

    def answer_choices(self) -> list[str]:
        return [str(n) for n in range(1, 10)]
