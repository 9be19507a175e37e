from __future__ import annotations

from family_archive.logging import get_logger
from family_archive.registry.entities import RecordGraph

log = get_logger(__name__)


def link_entities(graph: RecordGraph) -> None:
    """
    Build the individual -> family index.

    Links come from both sides of the file: HUSB/WIFE/CHIL on FAM records and
    FAMS/FAMC on INDI records. Exporters disagree on which side they write,
    so the union is used. References to records that do not exist are
    dropped. A FAMS link to a family whose HUSB and WIFE are both taken by
    someone else is dropped as well, so spouse links stay two-sided.

    Idempotent: the index is cleared before rebuilding.
    """
    graph.links.clear()

    for fam in graph.families.values():
        for spouse in fam.spouses:
            if spouse in graph.individuals:
                graph.link_spouse(spouse, fam.pointer)
        for child in fam.children:
            if child in graph.individuals:
                graph.link_child(child, fam.pointer)

    for ind in graph.individuals.values():
        for fam_ptr in ind.families_as_spouse:
            fam = graph.families.get(fam_ptr)
            if fam is None:
                continue
            # Back-fill the family side so neighbour queries see the link.
            if ind.pointer not in fam.spouses:
                if fam.husband is None and ind.sex != "F":
                    fam.husband = ind.pointer
                elif fam.wife is None:
                    fam.wife = ind.pointer
                elif fam.husband is None:
                    fam.husband = ind.pointer
                else:
                    log.warning(
                        "%s claims FAMS %s but both spouse slots are taken; link dropped",
                        ind.pointer, fam_ptr,
                    )
                    continue
            graph.link_spouse(ind.pointer, fam_ptr)
        for fam_ptr in ind.families_as_child:
            fam = graph.families.get(fam_ptr)
            if fam is None:
                continue
            graph.link_child(ind.pointer, fam_ptr)
            if ind.pointer not in fam.children:
                fam.children.append(ind.pointer)
