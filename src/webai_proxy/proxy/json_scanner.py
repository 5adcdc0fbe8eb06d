"""
Découpage d'un buffer contenant plusieurs objets JSON collés.

Le backend émet parfois deux objets sans séparateur (un objet contenu puis
un objet statistiques). Ce scanner découpe le texte en comptant la
profondeur des accolades.

Limitation connue: le scan est structurel, pas un vrai parseur JSON. Une
accolade à l'intérieur d'une chaîne littérale (ex: `"content": "a { b"`)
désynchronise le comptage. L'appelant doit tolérer un span non parsable.
"""
from dataclasses import dataclass, field
from typing import Iterator, List


@dataclass(frozen=True)
class JsonSpan:
    """Un candidat objet JSON: text == source[start:end]."""
    text: str
    start: int
    end: int


@dataclass
class ScanResult:
    """Résultat complet d'un scan."""
    spans: List[JsonSpan] = field(default_factory=list)
    unbalanced: bool = False
    remainder: str = ""


class ConcatenatedJsonScanner:
    """
    Itérateur paresseux sur les objets JSON d'un buffer.

    Après itération:
    - `unbalanced` vaut True si le dernier `{` n'a jamais été refermé
      (`remainder` contient alors le texte depuis ce `{`)
    - sinon `remainder` contient le texte final sans `{` (strippé)
    """

    def __init__(self, text: str):
        self.text = text
        self.unbalanced = False
        self.remainder = ""

    def __iter__(self) -> Iterator[JsonSpan]:
        text = self.text
        pos = 0

        while pos < len(text):
            start = text.find("{", pos)
            if start == -1:
                self.remainder = text[pos:].strip()
                return

            end = _find_closing_brace(text, start)
            if end == -1:
                self.unbalanced = True
                self.remainder = text[start:]
                return

            yield JsonSpan(text=text[start:end + 1], start=start, end=end + 1)
            pos = end + 1


def _find_closing_brace(text: str, start: int) -> int:
    """Index de l'accolade fermante correspondant à text[start], ou -1."""
    depth = 0
    for index in range(start, len(text)):
        char = text[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        if depth == 0:
            return index
    return -1


def scan_json_objects(text: str) -> ScanResult:
    """Scan complet (non paresseux) d'un buffer."""
    scanner = ConcatenatedJsonScanner(text)
    spans = list(scanner)
    return ScanResult(
        spans=spans,
        unbalanced=scanner.unbalanced,
        remainder=scanner.remainder
    )
