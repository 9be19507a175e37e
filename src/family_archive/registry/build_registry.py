from __future__ import annotations

from family_archive.loader.tree_builder import GEDCOMTree
from family_archive.logging import get_logger
from family_archive.registry.build_family import build_family
from family_archive.registry.build_individual import build_individual
from family_archive.registry.entities import RecordGraph
from family_archive.registry.link_entities import link_entities

log = get_logger(__name__)


def build_graph(tree: GEDCOMTree) -> RecordGraph:
    """
    Register INDI and FAM records in file order, then build the
    individual -> family index. Other record kinds (HEAD, SOUR, NOTE, OBJE,
    REPO, SUBM, TRLR) are not needed to rebuild the tree and are skipped.
    """
    graph = RecordGraph()

    for node in tree.records:
        if not node.pointer:
            continue
        try:
            if node.tag == "INDI":
                graph.register_individual(build_individual(node))
            elif node.tag == "FAM":
                graph.register_family(build_family(node))
        except ValueError as exc:
            log.warning("Line %d: skipping record: %s", node.lineno, exc)

    link_entities(graph)

    log.debug(
        "Record graph: %d individuals, %d families",
        len(graph.individuals), len(graph.families),
    )
    return graph
