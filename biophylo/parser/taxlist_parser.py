from biophylo.taxa.taxa import Taxa
from biophylo.taxa.taxon import Taxon


def parse_taxlist(text: str) -> Taxa:
    """One taxon per non-empty line."""
    taxa = Taxa()
    for line in text.splitlines():
        name = line.strip()
        if name:
            taxa.insert(Taxon(name=name))
    return taxa
