"""
Scene Graph Builder

Rebuilds the object hierarchy of an input asset from its flat node list and
assigns object ids.

Nodes live in an arena (a list addressed by input index). Parents are stored
as indices; ROOT stands for the virtual root that anchors every top-level
node and is never emitted.

Build steps:
1. Attach every declared child to its parent, in input order.
2. Attach the remaining orphans to the virtual root by ascending input index.
3. For the root's direct children only, exchange the child lists of the
   pairs (first, last), (second, second-last), ... and re-parent the moved
   children. The root children themselves keep their positions and deeper
   levels are left alone. The target engine expects exactly this layout.
4. Walk the tree in pre-order and allocate an object id for each node
   before its children are visited.

Object paths are "<name>" for top-level nodes and "<name><<parent path>"
below them. Unnamed nodes use "object_<position among siblings>".
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, TYPE_CHECKING

from .errors import InternalConsistencyError

if TYPE_CHECKING:
    from .registry import ResourceRegistry


logger = logging.getLogger(__name__)

ROOT = -1


@dataclass
class Node:
    """One scene node, addressed by its input index"""
    index: int
    name: Optional[str] = None
    parent: Optional[int] = None  # None until placed, ROOT for top level
    children: List[int] = field(default_factory=list)
    id: Optional[int] = None
    skin: Optional[int] = None       # skin id this node is a joint of
    mesh_skin: Optional[int] = None  # skin id used by the attached mesh


class SceneGraph:
    """Node arena plus the virtual root's child list"""

    def __init__(self, node_count: int):
        self.nodes: List[Node] = [Node(index) for index in range(node_count)]
        self.root_children: List[int] = []
        self._paths: Dict[int, str] = {}
        self._transformed = False
        self._ids_assigned = False

    def __len__(self) -> int:
        return len(self.nodes)

    def children_of(self, parent: int) -> List[int]:
        if parent == ROOT:
            return self.root_children
        return self.nodes[parent].children

    def attach(self, child: int, parent: int):
        node = self.nodes[child]
        if node.parent is not None:
            raise InternalConsistencyError(f"Node {child} already has a parent")

        node.parent = parent
        self.children_of(parent).append(child)

    def swap_root_subtrees(self):
        """Exchange child lists between mirrored root children (one level only)"""
        if self._transformed:
            raise InternalConsistencyError("Root transform already applied")
        self._transformed = True
        self._paths.clear()

        count = len(self.root_children)
        for i in range(count // 2):
            first = self.nodes[self.root_children[i]]
            second = self.nodes[self.root_children[count - i - 1]]

            for child in first.children:
                self.nodes[child].parent = second.index
            for child in second.children:
                self.nodes[child].parent = first.index

            first.children, second.children = second.children, first.children

    def walk(self) -> Iterator[int]:
        """Pre-order depth-first traversal, virtual root excluded"""
        stack = list(reversed(self.root_children))
        while stack:
            index = stack.pop()
            yield index
            stack.extend(reversed(self.nodes[index].children))

    def path(self, index: int) -> str:
        """Memoized object path of a node"""
        cached = self._paths.get(index)
        if cached is not None:
            return cached

        # Collect uncached ancestors, then resolve from the top down
        chain = []
        current = index
        while current != ROOT and current not in self._paths:
            chain.append(current)
            current = self._parent_of(current)

        for node_index in reversed(chain):
            parent = self.nodes[node_index].parent
            local = self._local_name(node_index)
            if parent == ROOT:
                self._paths[node_index] = local
            else:
                self._paths[node_index] = f"{local}<{self._paths[parent]}"

        return self._paths[index]

    def object_entry(self, index: int, source_file: str) -> Dict[str, Any]:
        """Manifest entry for a placed node"""
        node = self.nodes[index]
        entry: Dict[str, Any] = {
            "link": {
                "name": self.path(index),
                "file": source_file,
            }
        }

        if node.parent != ROOT:
            parent_id = self.nodes[node.parent].id
            if parent_id is None:
                raise InternalConsistencyError(f"Parent of node {index} has no id yet")
            entry["parent"] = str(parent_id)

        if node.skin is not None:
            entry["skin"] = str(node.skin)

        if node.mesh_skin is not None:
            entry["components"] = [{"mesh": {"skin": str(node.mesh_skin)}}]

        return entry

    def assign_ids(self, registry: "ResourceRegistry") -> List[int]:
        """
        Allocate object ids in pre-order and emit object entries.

        Joints are appended to their skin as soon as their id is known, so a
        skin's joint list follows traversal order rather than declaration
        order.

        Returns:
            Allocated object ids in traversal order
        """
        if self._ids_assigned:
            raise InternalConsistencyError("Object ids already assigned")
        self._ids_assigned = True

        ids = []
        for index in self.walk():
            node = self.nodes[index]
            if node.id is not None:
                raise InternalConsistencyError(f"Node {index} visited twice")

            node.id = registry.allocate("object", self.object_entry(index, registry.source_file))
            if node.skin is not None:
                registry.register_skin_joint(node.skin, node.id)
            ids.append(node.id)

        if len(ids) != len(self.nodes):
            missing = [n.index for n in self.nodes if n.id is None]
            raise InternalConsistencyError(f"Nodes not reachable from the root: {missing}")

        return ids

    def _parent_of(self, index: int) -> int:
        parent = self.nodes[index].parent
        if parent is None:
            raise InternalConsistencyError(f"Node {index} was never placed in the tree")
        return parent

    def _local_name(self, index: int) -> str:
        node = self.nodes[index]
        siblings = self.children_of(self._parent_of(index))
        if index not in siblings:
            raise InternalConsistencyError(f"Node {index} not present in parent")

        if node.name is not None:
            return node.name
        return f"object_{siblings.index(index)}"


class SceneGraphBuilder:
    """
    Builds a SceneGraph from normalized node records.

    Args:
        node_records: Input nodes ({name?, children?, skin?})
        skin_ids: Skin id for each input skin index
        joint_skins: Skin id for each joint node index
    """

    def __init__(
        self,
        node_records: Sequence[Dict[str, Any]],
        skin_ids: Optional[Sequence[int]] = None,
        joint_skins: Optional[Dict[int, int]] = None,
    ):
        self.node_records = node_records
        self.skin_ids = list(skin_ids or [])
        self.joint_skins = dict(joint_skins or {})

    def build(self) -> SceneGraph:
        graph = SceneGraph(len(self.node_records))
        orphans = set(range(len(self.node_records)))

        for index, record in enumerate(self.node_records):
            node = graph.nodes[index]
            node.name = record.get("name")

            for child in record.get("children") or []:
                graph.attach(child, index)
                orphans.discard(child)

            mesh_skin = record.get("skin")
            if mesh_skin is not None:
                node.mesh_skin = self.skin_ids[mesh_skin]

            node.skin = self.joint_skins.get(index)

        for orphan in sorted(orphans):
            graph.attach(orphan, ROOT)

        graph.swap_root_subtrees()

        logger.debug(f"Built scene graph: {len(graph)} nodes, {len(graph.root_children)} top level")
        return graph
