"""Parsing and rendering of genotype and genetic-distribution strings.

Genotypes are written gene by gene, two letters per gene, e.g. ``RrYyWwss``:
lowercase pair is homozygous recessive, mixed case heterozygous, uppercase
pair homozygous dominant. Distributions are written as
``{1:rryyWWss, 2:rryyWwss}`` (odds, colon, genotype) or as a bare genotype.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from flowerbreed.core.distribution import GeneticDistribution
from flowerbreed.core.genotype import Genotype
from flowerbreed.utils.validation import ValidationError

_GENOTYPE_RE = re.compile(r"^\w{6}(\w{2})?$")


def _gene_forms(gene: str) -> tuple[str, str, str]:
    lo, hi = gene[0].lower(), gene[0].upper()
    forms = (lo + lo, hi + lo, hi + hi)
    if gene not in forms:
        raise ValidationError("bad_gene", f"Could not parse gene {gene!r}", gene=gene)
    return forms


@dataclass(frozen=True)
class GenotypeSerde:
    """Gene spellings for one species, e.g. ``(("rr", "Rr", "RR"), ("yy", "Yy", "YY"), ...)``."""

    genes: tuple[tuple[str, str, str], ...]

    @classmethod
    def from_example(cls, genotype: str) -> "GenotypeSerde":
        """Derive gene letters (and gene count) from any genotype of the species."""
        if len(genotype) not in (6, 8):
            raise ValidationError("bad_genotype", f"Genotype {genotype!r} has wrong length (expected 6 or 8)",
                                  genotype=genotype)
        genes = tuple(_gene_forms(genotype[i:i + 2]) for i in range(0, len(genotype), 2))
        letters = [forms[0][0] for forms in genes]
        if len(set(letters)) != len(letters):
            raise ValidationError("duplicate_gene_letters", f"Duplicate gene letters in {genotype!r}",
                                  letters=tuple(letters))
        return cls(genes)

    @classmethod
    def from_example_distribution(cls, text: str) -> "GenotypeSerde":
        _, serde = _parse_distribution(None, text)
        return serde

    @property
    def gene_count(self) -> int:
        return len(self.genes)

    def parse_genotype(self, genotype: str) -> Genotype:
        expected = 2 * self.gene_count
        if len(genotype) != expected:
            raise ValidationError("bad_genotype", f"Genotype {genotype!r} has wrong length (expected {expected})",
                                  genotype=genotype)
        code = 0
        for locus, forms in enumerate(self.genes):
            pair = genotype[2 * locus:2 * locus + 2]
            try:
                zygosity = forms.index(pair)
            except ValueError:
                raise ValidationError("bad_gene", f"Unparsable gene {pair!r}", genotype=genotype) from None
            code |= zygosity << (2 * locus)
        return Genotype(code)

    def render_genotype(self, genotype: int) -> str:
        g = Genotype(genotype)
        return "".join(forms[g.gene(locus)] for locus, forms in enumerate(self.genes))

    def parse_distribution(self, text: str) -> GeneticDistribution:
        d, _ = _parse_distribution(self, text)
        return d

    def render_distribution(self, d: GeneticDistribution) -> str:
        terms = [f"{w}:{self.render_genotype(g)}" for g, w in d.items()]
        return "{" + ", ".join(terms) + "}"


def _parse_distribution(serde: GenotypeSerde | None, text: str) -> tuple[GeneticDistribution, GenotypeSerde]:
    text = text.strip()
    if _GENOTYPE_RE.match(text):
        serde = serde or GenotypeSerde.from_example(text)
        return serde.parse_genotype(text).to_distribution(), serde

    if not (text.startswith("{") and text.endswith("}")):
        raise ValidationError("bad_distribution", "Genetic distribution must be wrapped in curly braces", text=text)

    weights: dict[Genotype, int] = {}
    for term in text[1:-1].split(","):
        term = term.strip()
        odds_str, sep, genotype_str = term.partition(":")
        if not sep:
            raise ValidationError("bad_distribution", f"Unparseable term {term!r}", text=text)
        try:
            odds = int(odds_str.strip())
        except ValueError:
            raise ValidationError("bad_distribution", f"Couldn't parse odds for term {term!r}", text=text) from None
        if odds <= 0:
            raise ValidationError("bad_distribution", f"Odds must be positive in term {term!r}", text=text)
        genotype_str = genotype_str.strip()
        serde = serde or GenotypeSerde.from_example(genotype_str)
        g = serde.parse_genotype(genotype_str)
        if g in weights:
            raise ValidationError("duplicate_genotype", f"Duplicate genotype {serde.render_genotype(g)!r}",
                                  text=text)
        weights[g] = odds
    if serde is None:  # pragma: no cover - "{}" fails term parsing above
        raise ValidationError("bad_distribution", "Empty genetic distribution", text=text)
    return GeneticDistribution.from_weights(weights), serde


__all__ = ["GenotypeSerde"]
