"""Script model for the responder.

A script is data, not program: greetings, farewells, fallbacks, synonym
classes, pre-transforms, reflections and ranked keyword rules are loaded from
a JSON document, checked once, and shared read-only by every session built on
top of it.

Source shape::

    {
        "greetings": ["..."],
        "farewells": ["..."],
        "fallbacks": ["..."],
        "quits": ["bye", "goodbye"],
        "memory_limit": 4,
        "synonyms": [{"canonical": "family", "words": ["mother", "father"]}],
        "pretransforms": [{"from": "dont", "to": ["do", "not"]}],
        "reflections": [{"word": "i", "inverse": "you", "twoway": true}],
        "keywords": [
            {
                "word": "remember", "rank": 5,
                "decompositions": [
                    {
                        "pattern": ["*", "i", "remember", "*"],
                        "reassemblies": ["Do you often think of $2?",
                                         {"goto": "what"}],
                        "memorable": false
                    }
                ]
            }
        ]
    }

``*`` in a pattern is a wildcard, ``@family`` matches any word of the
``family`` synonym class and every other element is a literal word.
Reassemblies are either templates (strings with ``$N`` references or lists
of words and 1-based integers) or gotos (``{"goto": "word"}`` or
``"GOTO word"``).
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from normalize import tokenize

logger = logging.getLogger(__name__)

WILDCARD = "*"
SYNONYM_PREFIX = "@"
DEFAULT_QUITS = ("bye", "goodbye", "quit")
DEFAULT_MEMORY_LIMIT = 4

_REF_RE = re.compile(r"\$(\d+)")
_GOTO_RE = re.compile(r"^\s*GOTO\s+(\S+)\s*$")


class ScriptIntegrityError(ValueError):
    """Raised when a script cannot be loaded or fails validation."""

    def __init__(
        self,
        message: str,
        keyword: Optional[str] = None,
        decomposition: Optional[int] = None,
    ) -> None:
        self.keyword = keyword
        self.decomposition = decomposition
        location = []
        if keyword is not None:
            location.append(f"keyword {keyword!r}")
        if decomposition is not None:
            location.append(f"decomposition {decomposition}")
        if location:
            message = f"{', '.join(location)}: {message}"
        super().__init__(message)


@dataclass(frozen=True)
class PatternElement:
    """One element of a decomposition pattern."""

    kind: str  # "literal", "wildcard" or "synonym"
    word: str = ""

    @property
    def is_wildcard(self) -> bool:
        return self.kind == "wildcard"


@dataclass(frozen=True)
class Template:
    """Reply text as literal segments and 1-based wildcard references."""

    parts: Tuple[Union[str, int], ...]

    @property
    def refs(self) -> Tuple[int, ...]:
        return tuple(p for p in self.parts if isinstance(p, int))


@dataclass(frozen=True)
class Reassembly:
    template: Optional[Template] = None
    goto: Optional[str] = None

    @property
    def is_goto(self) -> bool:
        return self.goto is not None


@dataclass(frozen=True)
class DecompRule:
    pattern: Tuple[PatternElement, ...]
    reassemblies: Tuple[Reassembly, ...]
    memorable: bool = False
    memory: Optional[Template] = None

    @property
    def wildcards(self) -> int:
        return sum(1 for element in self.pattern if element.is_wildcard)


@dataclass(frozen=True)
class KeywordRule:
    word: str
    rank: int
    decompositions: Tuple[DecompRule, ...]
    order: int = 0


@dataclass(frozen=True)
class Script:
    greetings: Tuple[str, ...]
    farewells: Tuple[str, ...]
    fallbacks: Tuple[str, ...]
    keywords: Tuple[KeywordRule, ...]
    synonyms: Mapping[str, frozenset] = field(default_factory=lambda: MappingProxyType({}))
    pretransforms: Mapping[str, Tuple[str, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    reflections: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    quits: Tuple[str, ...] = DEFAULT_QUITS
    memory_limit: int = DEFAULT_MEMORY_LIMIT

    def keyword(self, word: str) -> Optional[KeywordRule]:
        """Return the rule for *word*, or ``None``."""
        for rule in self.keywords:
            if rule.word == word:
                return rule
        return None

    def classes_of(self, word: str) -> List[str]:
        """Return the canonical forms whose synonym class contains *word*."""
        return [c for c, words in self.synonyms.items() if word in words]


def _single_word(
    value: Any, what: str, keyword: Optional[str] = None, index: Optional[int] = None
) -> str:
    words = tokenize(str(value)) if isinstance(value, str) else []
    if len(words) != 1:
        raise ScriptIntegrityError(f"{what} must be a single word, got {value!r}", keyword, index)
    return words[0]


def _string_list(data: Mapping[str, Any], key: str, required: bool) -> Tuple[str, ...]:
    values = data.get(key, [])
    if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
        raise ScriptIntegrityError(f"{key!r} must be a list of strings")
    values = [v.strip() for v in values if v.strip()]
    if required and not values:
        raise ScriptIntegrityError(f"{key!r} must contain at least one entry")
    return tuple(values)


def _parse_synonyms(entries: Any) -> Dict[str, frozenset]:
    if not isinstance(entries, list):
        raise ScriptIntegrityError("'synonyms' must be a list")
    synonyms: Dict[str, frozenset] = {}
    for entry in entries:
        if not isinstance(entry, dict):
            raise ScriptIntegrityError(f"invalid synonym entry {entry!r}")
        canonical = _single_word(entry.get("canonical", entry.get("word")), "synonym canonical")
        words = entry.get("words", entry.get("equivalents", []))
        if not isinstance(words, list) or not words:
            raise ScriptIntegrityError(f"synonym {canonical!r} needs at least one word")
        members = {_single_word(w, f"synonym of {canonical!r}") for w in words}
        synonyms[canonical] = frozenset(synonyms.get(canonical, frozenset()) | members)
    return synonyms


def _parse_pretransforms(data: Mapping[str, Any]) -> Dict[str, Tuple[str, ...]]:
    pretransforms: Dict[str, Tuple[str, ...]] = {}
    for entry in data.get("pretransforms", []):
        if not isinstance(entry, dict):
            raise ScriptIntegrityError(f"invalid pretransform {entry!r}")
        source = _single_word(entry.get("from"), "pretransform source")
        target = entry.get("to", [])
        if isinstance(target, str):
            target = [target]
        if not isinstance(target, list):
            raise ScriptIntegrityError(f"pretransform {source!r} target must be a list")
        words = [w for item in target for w in tokenize(str(item))]
        if not words:
            raise ScriptIntegrityError(f"pretransform {source!r} has an empty target")
        pretransforms[source] = tuple(words)
    # Older shape: every equivalent is rewritten to the canonical word.
    for entry in data.get("transforms", []):
        if not isinstance(entry, dict):
            raise ScriptIntegrityError(f"invalid transform {entry!r}")
        word = _single_word(entry.get("word"), "transform word")
        for equivalent in entry.get("equivalents", []):
            pretransforms[_single_word(equivalent, f"equivalent of {word!r}")] = (word,)
    return pretransforms


def _parse_reflections(entries: Any) -> Dict[str, str]:
    if not isinstance(entries, list):
        raise ScriptIntegrityError("'reflections' must be a list")
    reflections: Dict[str, str] = {}
    for entry in entries:
        if not isinstance(entry, dict) or not isinstance(entry.get("inverse"), str):
            raise ScriptIntegrityError(f"invalid reflection {entry!r}")
        word = _single_word(entry.get("word"), "reflection word")
        inverse = entry["inverse"].strip()
        reflections.setdefault(word, inverse)
        if entry.get("twoway"):
            reflections.setdefault(_single_word(inverse, "two-way reflection inverse"), word)
    return reflections


def _parse_pattern(
    raw: Any, synonyms: Mapping[str, frozenset], keyword: str, index: int
) -> Tuple[PatternElement, ...]:
    if isinstance(raw, str):
        raw = raw.split()
    if not isinstance(raw, list):
        raise ScriptIntegrityError("pattern must be a list or a string", keyword, index)
    elements: List[PatternElement] = []
    for item in raw:
        item = str(item).strip()
        if item == WILDCARD:
            elements.append(PatternElement("wildcard"))
        elif item.startswith(SYNONYM_PREFIX) and len(item) > 1:
            canonical = _single_word(item[1:], "synonym class", keyword, index)
            if canonical not in synonyms:
                raise ScriptIntegrityError(
                    f"pattern names unknown synonym class {item!r}", keyword, index
                )
            elements.append(PatternElement("synonym", canonical))
        else:
            words = tokenize(item)
            if not words:
                raise ScriptIntegrityError(
                    f"pattern element {item!r} has no words", keyword, index
                )
            elements.extend(PatternElement("literal", w) for w in words)
    if not elements:
        raise ScriptIntegrityError("pattern must not be empty", keyword, index)
    return tuple(elements)


def parse_template(raw: Any) -> Template:
    """Build a :class:`Template` from a ``$N`` string or a word/index list."""
    parts: List[Union[str, int]] = []
    if isinstance(raw, str):
        position = 0
        for found in _REF_RE.finditer(raw):
            if found.start() > position:
                parts.append(raw[position : found.start()])
            parts.append(int(found.group(1)))
            position = found.end()
        if position < len(raw):
            parts.append(raw[position:])
    elif isinstance(raw, list):
        for i, item in enumerate(raw):
            if i:
                parts.append(" ")
            if isinstance(item, bool) or not isinstance(item, (int, str)):
                raise ValueError(f"invalid template element {item!r}")
            parts.append(item)
    else:
        raise ValueError(f"invalid template {raw!r}")
    if not parts:
        raise ValueError("template must not be empty")
    return Template(tuple(parts))


def _parse_reassembly(raw: Any, keyword: str, index: int) -> Reassembly:
    if isinstance(raw, dict):
        if "goto" not in raw:
            raise ScriptIntegrityError(f"invalid reassembly {raw!r}", keyword, index)
        return Reassembly(goto=_single_word(raw["goto"], "goto target", keyword, index))
    if isinstance(raw, str):
        goto = _GOTO_RE.match(raw)
        if goto:
            return Reassembly(goto=_single_word(goto.group(1), "goto target", keyword, index))
    try:
        return Reassembly(template=parse_template(raw))
    except ValueError as exc:
        raise ScriptIntegrityError(str(exc), keyword, index) from exc


def _check_refs(template: Template, wildcards: int, keyword: str, index: int) -> None:
    for ref in template.refs:
        if not 1 <= ref <= wildcards:
            raise ScriptIntegrityError(
                f"reference ${ref} has no matching wildcard "
                f"(pattern has {wildcards})",
                keyword,
                index,
            )


def _parse_decomposition(
    raw: Any, synonyms: Mapping[str, frozenset], keyword: str, index: int
) -> DecompRule:
    if not isinstance(raw, dict):
        raise ScriptIntegrityError(f"invalid decomposition {raw!r}", keyword, index)
    pattern = _parse_pattern(raw.get("pattern"), synonyms, keyword, index)
    entries = raw.get("reassemblies", [])
    if not isinstance(entries, list) or not entries:
        raise ScriptIntegrityError("at least one reassembly is required", keyword, index)
    reassemblies = tuple(_parse_reassembly(r, keyword, index) for r in entries)
    wildcards = sum(1 for element in pattern if element.is_wildcard)
    for reassembly in reassemblies:
        if reassembly.template is not None:
            _check_refs(reassembly.template, wildcards, keyword, index)

    memorable = bool(raw.get("memorable", raw.get("memorise", False)))
    memory = None
    if raw.get("memory") is not None:
        try:
            memory = parse_template(raw["memory"])
        except ValueError as exc:
            raise ScriptIntegrityError(str(exc), keyword, index) from exc
        _check_refs(memory, wildcards, keyword, index)
    elif memorable:
        templates = [r.template for r in reassemblies if r.template is not None]
        if not templates:
            raise ScriptIntegrityError(
                "memorable decomposition needs a memory template", keyword, index
            )
        memory = templates[0]
    return DecompRule(pattern, reassemblies, memorable, memory)


def _parse_keyword(raw: Any, synonyms: Mapping[str, frozenset], order: int) -> KeywordRule:
    if not isinstance(raw, dict):
        raise ScriptIntegrityError(f"invalid keyword entry {raw!r}")
    word = _single_word(raw.get("word", raw.get("key")), "keyword")
    rank = raw.get("rank", 0)
    if isinstance(rank, bool) or not isinstance(rank, int):
        raise ScriptIntegrityError(f"rank must be an integer, got {rank!r}", word)
    entries = raw.get("decompositions", raw.get("rules", []))
    if not isinstance(entries, list) or not entries:
        raise ScriptIntegrityError("at least one decomposition is required", word)
    decompositions = tuple(
        _parse_decomposition(d, synonyms, word, i) for i, d in enumerate(entries)
    )
    return KeywordRule(word, rank, decompositions, order)


def _check_gotos(keywords: Tuple[KeywordRule, ...]) -> None:
    by_word = {rule.word: rule for rule in keywords}
    for rule in keywords:
        for index, decomposition in enumerate(rule.decompositions):
            for reassembly in decomposition.reassemblies:
                if not reassembly.is_goto:
                    continue
                target = by_word.get(reassembly.goto)
                if target is None:
                    raise ScriptIntegrityError(
                        f"goto names unknown keyword {reassembly.goto!r}", rule.word, index
                    )
                if any(r.is_goto for d in target.decompositions for r in d.reassemblies):
                    raise ScriptIntegrityError(
                        f"goto target {target.word!r} redirects again", rule.word, index
                    )


def script_from_dict(data: Mapping[str, Any]) -> Script:
    """Validate *data* and build an immutable :class:`Script`."""
    if not isinstance(data, dict):
        raise ScriptIntegrityError("script must be a JSON object")

    synonyms = _parse_synonyms(data.get("synonyms", []))
    raw_keywords = data.get("keywords", [])
    if not isinstance(raw_keywords, list) or not raw_keywords:
        raise ScriptIntegrityError("'keywords' must contain at least one entry")

    keywords = []
    seen = set()
    for order, raw in enumerate(raw_keywords):
        rule = _parse_keyword(raw, synonyms, order)
        if rule.word in seen:
            raise ScriptIntegrityError("duplicate keyword", rule.word)
        seen.add(rule.word)
        keywords.append(rule)
    keywords = tuple(keywords)
    _check_gotos(keywords)

    memory_limit = data.get("memory_limit", DEFAULT_MEMORY_LIMIT)
    if isinstance(memory_limit, bool) or not isinstance(memory_limit, int) or memory_limit < 1:
        raise ScriptIntegrityError(f"'memory_limit' must be a positive integer, got {memory_limit!r}")

    quits = _string_list(data, "quits", required=False) if "quits" in data else DEFAULT_QUITS

    return Script(
        greetings=_string_list(data, "greetings", required=True),
        farewells=_string_list(data, "farewells", required=True),
        fallbacks=_string_list(data, "fallbacks", required=True),
        keywords=keywords,
        synonyms=MappingProxyType(synonyms),
        pretransforms=MappingProxyType(_parse_pretransforms(data)),
        reflections=MappingProxyType(_parse_reflections(data.get("reflections", []))),
        quits=quits,
        memory_limit=memory_limit,
    )


def load_script(path: Union[str, Path]) -> Script:
    """Read and validate the JSON script at *path*."""
    path = Path(path)
    logger.info(f"Loading script {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as exc:
        raise ScriptIntegrityError(f"cannot read script {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ScriptIntegrityError(f"invalid JSON in {path}: {exc}") from exc

    script = script_from_dict(data)
    logger.info(
        f"Loaded {len(script.keywords)} keywords, {len(script.synonyms)} synonym classes"
    )
    return script
