"""Graph of instances and the links between them across nodes."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from coroot.model.status import Status


@dataclass
class DependencyMapInstance:
    id: str
    name: str
    obsolete: bool = False


@dataclass
class DependencyMapNode:
    name: str
    provider: str = ""
    region: str = ""
    az: str = ""
    src_instances: list[DependencyMapInstance] = field(default_factory=list)
    dst_instances: list[DependencyMapInstance] = field(default_factory=list)

    def add_src_instance(self, instance: DependencyMapInstance) -> None:
        if all(i.name != instance.name for i in self.src_instances):
            self.src_instances.append(instance)

    def add_dst_instance(self, instance: DependencyMapInstance) -> None:
        if all(i.name != instance.name for i in self.dst_instances):
            self.dst_instances.append(instance)


@dataclass
class DependencyMapLink:
    src_instance: str
    dst_instance: str
    status: Status = Status.UNKNOWN


@dataclass
class DependencyMap:
    nodes: list[DependencyMapNode] = field(default_factory=list)
    links: list[DependencyMapLink] = field(default_factory=list)

    def get_or_create_node(self, node: DependencyMapNode) -> DependencyMapNode:
        """Return the node with the same name, adding a copy of ``node`` if none exists."""
        for n in self.nodes:
            if n.name == node.name:
                return n
        created = replace(
            node, src_instances=list(node.src_instances), dst_instances=list(node.dst_instances)
        )
        self.nodes.append(created)
        return created

    def update_link(
        self,
        src: DependencyMapInstance,
        src_node: DependencyMapNode,
        dst: DependencyMapInstance,
        dst_node: DependencyMapNode,
        link_status: Status,
    ) -> None:
        """Record a link, keeping the worst status seen for it."""
        self.get_or_create_node(src_node).add_src_instance(src)
        self.get_or_create_node(dst_node).add_dst_instance(dst)
        for link in self.links:
            if link.src_instance == src.id and link.dst_instance == dst.id:
                if link.status < link_status:
                    link.status = link_status
                return
        self.links.append(DependencyMapLink(src.id, dst.id, link_status))