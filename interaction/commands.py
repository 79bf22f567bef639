"""Voice command parsing for hands-free object search.

Transcripts are matched against Turkish and English trigger phrases. The object
phrase is taken after the verb ("find computer", "bul bilgisayar") or, failing
that, before it ("bilgisayar bul"), cleaned of filler words and mapped to the
detector's canonical label.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import re
import string
from typing import Mapping, Protocol

from core.logging import logger

CLEAR_TRIGGER_PHRASES = ("temizle", "iptal", "vazgeç", "sıfırla", "dur", "clear", "cancel")

SEARCH_TRIGGER_PHRASES = ("bul", "ara", "nerede", "göster", "find", "search")

LEADING_FILLERS = (
    "bir ",
    "bu ",
    "şu ",
    "o ",
    "benim ",
    "the ",
    "a ",
    "an ",
    "my ",
    "bana ",
    "bunu ",
    "şunu ",
)

TRAILING_FILLERS = (" bul", " ara", " göster", " nerede")

CANONICAL_LABELS: dict[str, str] = {
    # electronics
    "bilgisayar": "computer",
    "laptop": "laptop",
    "dizüstü": "laptop",
    "telefon": "cell phone",
    "cep telefonu": "cell phone",
    "mobil": "cell phone",
    "tablet": "tablet",
    "klavye": "keyboard",
    "fare": "mouse",
    "monitör": "monitor",
    "ekran": "monitor",
    "televizyon": "tv",
    "tv": "tv",
    # furniture
    "sandalye": "chair",
    "koltuk": "couch",
    "kanepe": "couch",
    "masa": "dining table",
    "yatak": "bed",
    "dolap": "cabinet",
    "kitaplık": "bookshelf",
    # kitchen
    "bardak": "cup",
    "fincan": "cup",
    "şişe": "bottle",
    "çatal": "fork",
    "bıçak": "knife",
    "kaşık": "spoon",
    "tabak": "bowl",
    "kase": "bowl",
    "buzdolabı": "refrigerator",
    "fırın": "oven",
    "mikrodalga": "microwave",
    # personal items
    "çanta": "handbag",
    "sırt çantası": "backpack",
    "valiz": "suitcase",
    "şemsiye": "umbrella",
    "gözlük": "glasses",
    "saat": "clock",
    "anahtar": "keys",
    "cüzdan": "wallet",
    # transport
    "araba": "car",
    "otomobil": "car",
    "otobüs": "bus",
    "kamyon": "truck",
    "motorsiklet": "motorcycle",
    "bisiklet": "bicycle",
    "uçak": "airplane",
    "tren": "train",
    "tekne": "boat",
    "gemi": "boat",
    # animals
    "kedi": "cat",
    "köpek": "dog",
    "kuş": "bird",
    "at": "horse",
    "inek": "cow",
    "koyun": "sheep",
    "fil": "elephant",
    "ayı": "bear",
    "zürafa": "giraffe",
    "zebra": "zebra",
    # people
    "kişi": "person",
    "insan": "person",
    "adam": "person",
    "kadın": "person",
    # sports
    "top": "sports ball",
    "futbol topu": "sports ball",
    "tenis raketi": "tennis racket",
    "kayak": "skis",
    "sörf tahtası": "surfboard",
    # food
    "elma": "apple",
    "muz": "banana",
    "portakal": "orange",
    "sandviç": "sandwich",
    "pizza": "pizza",
    "kek": "cake",
    "pasta": "cake",
    "havuç": "carrot",
    "brokoli": "broccoli",
    "sosisli": "hot dog",
    # other
    "kitap": "book",
    "lamba": "lamp",
    "vazo": "vase",
    "makas": "scissors",
    "oyuncak": "teddy bear",
    "diş fırçası": "toothbrush",
    "saksı": "potted plant",
    "bitki": "potted plant",
    "çiçek": "potted plant",
    "kapı": "door",
    "pencere": "window",
}

_STRIP_CHARS = string.punctuation + string.whitespace + "¿¡…“”‘’«»"


class TargetSink(Protocol):
    """Receiver of parsed commands, usually the state owner."""

    def set_target(self, target: str | None) -> object:
        ...

    def clear(self) -> object:
        ...


class CommandAction(str, Enum):
    NONE = "none"
    CLEAR = "clear"
    SEARCH = "search"


@dataclass(frozen=True)
class ParsedCommand:
    """Result of parsing one transcript."""

    action: CommandAction
    target: str | None = None
    trigger: str | None = None
    phrase: str | None = None


NO_COMMAND = ParsedCommand(action=CommandAction.NONE)


def normalize_transcript(text: str) -> str:
    return re.sub(r"\s+", " ", text.lower()).strip()


def strip_fillers(phrase: str) -> str:
    """Remove one leading article and one trailing verb, then outer punctuation."""

    for filler in LEADING_FILLERS:
        if phrase.startswith(filler):
            phrase = phrase[len(filler):]
    for suffix in TRAILING_FILLERS:
        if phrase.endswith(suffix):
            phrase = phrase[: -len(suffix)]
    return phrase.strip(_STRIP_CHARS)


def translate_label(phrase: str, dictionary: Mapping[str, str] = CANONICAL_LABELS) -> str:
    """Map a spoken object name to the detector's canonical label.

    An exact key wins, and a phrase that already is a canonical label is kept
    as is. Otherwise the longest key contained in the phrase is used, ties
    broken alphabetically. Unknown phrases pass through unchanged.
    """

    lowered = phrase.lower()
    exact = dictionary.get(lowered)
    if exact is not None:
        return exact
    if lowered in dictionary.values():
        return lowered

    candidates = [key for key in dictionary if key in lowered]
    if not candidates:
        return phrase
    best = min(candidates, key=lambda key: (-len(key), key))
    return dictionary[best]


class CommandParser:
    """Turn speech transcripts into search or clear commands for a sink."""

    def __init__(
        self,
        sink: TargetSink | None = None,
        clear_phrases: tuple[str, ...] = CLEAR_TRIGGER_PHRASES,
        search_phrases: tuple[str, ...] = SEARCH_TRIGGER_PHRASES,
        dictionary: Mapping[str, str] | None = None,
    ) -> None:
        self.sink = sink
        self.clear_phrases = clear_phrases
        self.search_phrases = search_phrases
        self.dictionary = dict(CANONICAL_LABELS if dictionary is None else dictionary)

    def parse(self, transcript: str) -> ParsedCommand:
        text = normalize_transcript(transcript)
        if not text:
            return NO_COMMAND

        for phrase in self.clear_phrases:
            if phrase in text:
                return ParsedCommand(action=CommandAction.CLEAR, trigger=phrase)

        for phrase in self.search_phrases:
            if phrase in text:
                return self._extract(text, phrase)

        return NO_COMMAND

    def handle_transcript(self, transcript: str) -> ParsedCommand:
        """Parse ``transcript`` and apply the result to the sink."""

        command = self.parse(transcript)
        if command.action is CommandAction.NONE:
            logger.debug("[COMMAND] No command in %r", transcript)
            return command
        if self.sink is None:
            logger.warning("[COMMAND] No sink attached; dropping %s", command.action.value)
            return command

        if command.action is CommandAction.CLEAR:
            logger.info("[COMMAND] Clear (trigger=%r)", command.trigger)
            self.sink.clear()
        else:
            logger.info(
                "[COMMAND] Search %r -> %r (trigger=%r)",
                command.phrase,
                command.target,
                command.trigger,
            )
            self.sink.set_target(command.target)
        return command

    def _extract(self, text: str, trigger: str) -> ParsedCommand:
        parts = text.split(trigger)
        after = parts[-1].strip()
        before = parts[0].strip()
        phrase = after or before
        if not phrase:
            return NO_COMMAND

        phrase = strip_fillers(phrase)
        if not phrase:
            return NO_COMMAND

        target = translate_label(phrase, self.dictionary).strip()
        if not target:
            return NO_COMMAND
        return ParsedCommand(
            action=CommandAction.SEARCH,
            target=target,
            trigger=trigger,
            phrase=phrase,
        )
