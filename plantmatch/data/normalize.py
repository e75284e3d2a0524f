"""Plant name normalization and name-component parsing."""
import re
import unicodedata
from dataclasses import dataclass

SYNONYM_SEPARATOR = " | "

# Straight, typographic and prime quote marks. All of them are deleted so that
# "Pinus cembra 'Stricta'" and "Pinus cembra Stricta" normalize identically.
QUOTE_CHARS = "'\"`´‘’‚‛“”„′″"

_QUOTE_RE = re.compile("[" + re.escape(QUOTE_CHARS) + "]")
_DASH_RE = re.compile("[‐-―−]")
_OTHER_RE = re.compile(r"[^\w\s\-]|_")
_HYPHEN_RUN_RE = re.compile(r"-{2,}")
_EDGE_HYPHEN_RE = re.compile(r"(?<!\w)-|-(?!\w)")
_SPACE_RE = re.compile(r"\s+")

_SINGLE_QUOTED_RE = re.compile(r"['‘’]([^'‘’]+)['‘’]")
_DOUBLE_QUOTED_RE = re.compile(r"[\"“”]([^\"“”]+)[\"“”]")
_TRADE_NAME_RE = re.compile(r"\b[A-ZÅÄÖ]{3,}(?:\s+[A-ZÅÄÖ]{3,})*\b")


def _strip_diacritics(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def normalize_plant_name(name: str | None) -> str:
    """Normalize a plant name into its comparison form.

    Folds case, drops diacritics (å -> a, ö -> o, ï -> i), deletes quote
    marks, deletes periods, maps the hybrid sign to "x", keeps hyphens that
    join two word characters and turns every other punctuation character
    into a space before collapsing whitespace.

    Never raises. ``None`` and blank input give ``""``. The result is a fixed
    point: normalizing it again returns it unchanged.
    """
    if not name:
        return ""
    name = unicodedata.normalize("NFKC", str(name)).casefold()
    name = name.replace("×", " x ")
    name = _strip_diacritics(name)
    name = _QUOTE_RE.sub("", name)
    # Remove periods (abbreviations like var. -> var, O.G. -> og)
    name = name.replace(".", "")
    name = _DASH_RE.sub("-", name)
    name = _OTHER_RE.sub(" ", name)
    name = _HYPHEN_RUN_RE.sub("-", name)
    name = _EDGE_HYPHEN_RE.sub(" ", name)
    name = _SPACE_RE.sub(" ", name).strip()
    return name


def split_synonyms(text: str | None, keep_empty: bool = False) -> list[str]:
    """Split a pipe-separated synonym column into trimmed items.

    With ``keep_empty=True`` blank slots are kept so that positions line up
    with the parallel synonym id column.
    """
    if not text:
        return []
    items = [item.strip() for item in str(text).split("|")]
    if keep_empty:
        return items
    return [item for item in items if item]


def join_synonyms(items) -> str:
    return SYNONYM_SEPARATOR.join(str(item).strip() for item in items)


def normalize_synonym_list(text: str | None) -> str:
    """Normalize every synonym in a pipe-separated column, keeping the separator."""
    normalized = (normalize_plant_name(item) for item in split_synonyms(text))
    return SYNONYM_SEPARATOR.join(n for n in normalized if n)


@dataclass(frozen=True)
class PlantNameParts:
    genus: str = ""
    species: str = ""
    cultivar: str = ""
    trade_name: str = ""
    remainder: str = ""


def parse_plant_name(name: str | None) -> PlantNameParts:
    """Split a raw plant name into genus, species, cultivar and trade name.

    Cultivar epithets are the single- or double-quoted parts
    (``Rosa 'Queen Elizabeth'``). Trade names are runs of all-caps words of
    three or more letters after the first word (``Rosa KNOCK OUT``), so a
    genus written in capitals (``ROSA glauca``) stays the genus. The first two
    remaining words are genus and species; a hybrid sign between them is
    skipped. Every part is returned normalized.
    """
    if not name:
        return PlantNameParts()
    working = str(name).strip()

    cultivars = _SINGLE_QUOTED_RE.findall(working) + _DOUBLE_QUOTED_RE.findall(working)
    working = _DOUBLE_QUOTED_RE.sub(" ", _SINGLE_QUOTED_RE.sub(" ", working))
    working = _SPACE_RE.sub(" ", working).strip()

    head, _, tail = working.partition(" ")
    trade_names = _TRADE_NAME_RE.findall(tail)
    working = head + " " + _TRADE_NAME_RE.sub(" ", tail)

    words = [w for w in normalize_plant_name(working).split(" ") if w and w != "x"]
    return PlantNameParts(
        genus=words[0] if words else "",
        species=words[1] if len(words) > 1 else "",
        cultivar=normalize_plant_name(" ".join(cultivars)),
        trade_name=normalize_plant_name(" ".join(trade_names)),
        remainder=" ".join(words[2:]),
    )
