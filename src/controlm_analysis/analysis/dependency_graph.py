"""
Dependency Graph Module

Directed graph over job names built from condition and control-resource
references. Condition and resource names become nodes of their own, so a job
consuming condition "C" gets the edge C -> job even when no job is named C, and
a job producing "C" gets job -> C. Producer and consumer are thereby linked
through the condition node. Deleting an out-condition (SIGN "-") produces
nothing, and neither does re-posting a condition the job itself consumes.
Use job_edges_only() when only job-to-job edges are wanted.
"""

import logging
from collections import defaultdict
from graphlib import TopologicalSorter
from typing import Dict, Iterable, List, Optional, Set

from ..domain.entities import Dependency, DependencyType, Job

logger = logging.getLogger(__name__)

DELETE_SIGN = '-'


class DependencyGraph:
    """Labelled multi-digraph of job dependencies."""

    def __init__(self):
        self._nodes: Dict[str, None] = {}  # insertion-ordered set
        self._job_names: Set[str] = set()
        self._edges: List[Dependency] = []
        self._incoming: Dict[str, List[Dependency]] = defaultdict(list)
        self._outgoing: Dict[str, List[Dependency]] = defaultdict(list)
        self._depth_cache: Optional[Dict[str, int]] = None
        self._cyclic: Optional[bool] = None

    @classmethod
    def from_jobs(cls, jobs: Iterable[Job]) -> 'DependencyGraph':
        """
        Build the graph.

        Edges: C -> job for every INCOND, job -> C for every OUTCOND that adds
        a condition the job does not consume itself, and R -> job for every
        CONTROL.
        """
        graph = cls()
        jobs = list(jobs)
        for job in jobs:
            graph.add_job(job.job_name)

        for job in jobs:
            consumed = {condition.name for condition in job.in_conditions}
            for condition in job.in_conditions:
                graph.add_dependency(Dependency(
                    condition.name, job.job_name, DependencyType.IN_CONDITION, condition.name
                ))
            for condition in job.out_conditions:
                if condition.sign == DELETE_SIGN or condition.name in consumed:
                    continue
                # A condition named after its producer is the producer node itself
                if condition.name == job.job_name:
                    continue
                graph.add_dependency(Dependency(
                    job.job_name, condition.name, DependencyType.OUT_CONDITION, condition.name
                ))
            for resource in job.control_resources:
                graph.add_dependency(Dependency(
                    resource.name, job.job_name, DependencyType.CONTROL_RESOURCE, resource.name
                ))

        logger.debug(f"Dependency graph: {len(graph._nodes)} nodes, {len(graph._edges)} edges")
        return graph

    def add_job(self, job_name: str):
        self._job_names.add(job_name)
        self._add_node(job_name)

    def _add_node(self, name: str):
        if name not in self._nodes:
            self._nodes[name] = None
            self._invalidate()

    def add_dependency(self, dependency: Dependency):
        """Add an edge, creating either endpoint on demand."""
        self._add_node(dependency.from_job)
        self._add_node(dependency.to_job)
        self._edges.append(dependency)
        self._incoming[dependency.to_job].append(dependency)
        self._outgoing[dependency.from_job].append(dependency)
        self._invalidate()

    def _invalidate(self):
        self._depth_cache = None
        self._cyclic = None

    @property
    def nodes(self) -> List[str]:
        return list(self._nodes)

    @property
    def edges(self) -> List[Dependency]:
        return list(self._edges)

    def __contains__(self, name: str) -> bool:
        return name in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def dependencies_of(self, job_name: str) -> List[Dependency]:
        """Edges pointing into a node."""
        return list(self._incoming.get(job_name, []))

    def upstream(self, job_name: str) -> List[str]:
        """Distinct direct predecessors, in edge order."""
        return list(dict.fromkeys(dep.from_job for dep in self._incoming.get(job_name, [])))

    def downstream(self, job_name: str) -> List[str]:
        """Distinct direct successors, in edge order."""
        return list(dict.fromkeys(dep.to_job for dep in self._outgoing.get(job_name, [])))

    def job_edges_only(self) -> List[Dependency]:
        return [
            dep for dep in self._edges
            if dep.from_job in self._job_names and dep.to_job in self._job_names
        ]

    def topological_order(self) -> List[str]:
        """
        Nodes with every predecessor before its successors.

        Raises:
            graphlib.CycleError: if the graph has a cycle
        """
        sorter = TopologicalSorter({node: set(self.upstream(node)) for node in self._nodes})
        return list(sorter.static_order())

    def has_cycle(self) -> bool:
        if self._cyclic is None:
            self._analyze()
        return self._cyclic

    def depth(self, job_name: str) -> int:
        """
        Length of the longest predecessor chain ending at a node, counting the node.

        Roots have depth 1, unknown names 0. On cyclic graphs a node re-entered on
        the current path contributes 0, which bounds the walk.
        """
        if job_name not in self._nodes:
            return 0
        if self._depth_cache is None:
            self._analyze()
        return self._depth_cache[job_name]

    def _analyze(self):
        """
        Fill the depth cache and the cycle flag in one pass.

        Components arrive ancestors first, so every predecessor outside a
        component already has its depth. A node's depth does not depend on the
        walk that reached it unless that walk passed through its own component,
        which is why each component is solved on its own.
        """
        cache: Dict[str, int] = {}
        cyclic = False
        for members in self._components():
            member_set = set(members)
            if len(members) == 1 and members[0] not in self.upstream(members[0]):
                node = members[0]
                cache[node] = 1 + max((cache[p] for p in self.upstream(node)), default=0)
                continue

            cyclic = True
            outside = {
                node: max((cache[p] for p in self.upstream(node) if p not in member_set), default=0)
                for node in members
            }
            for node in members:
                cache[node] = self._component_depth(node, member_set, outside)

        self._depth_cache = cache
        self._cyclic = cyclic
        if cyclic:
            logger.debug("Dependency graph contains at least one cycle")

    def _component_depth(self, start: str, members: Set[str], outside: Dict[str, int]) -> int:
        """Longest simple upstream path inside one cyclic component, plus its exit depth."""
        path = [start]
        on_path = {start}
        pending = [iter([p for p in self.upstream(start) if p in members])]
        deepest = 1 + outside[start]

        while pending:
            node = next(pending[-1], None)
            if node is None:
                pending.pop()
                on_path.discard(path.pop())
                continue
            if node in on_path:
                continue
            path.append(node)
            on_path.add(node)
            pending.append(iter([p for p in self.upstream(node) if p in members]))
            deepest = max(deepest, len(path) + outside[node])

        return deepest

    def _components(self) -> List[List[str]]:
        """Strongly connected components over predecessor edges (iterative Tarjan)."""
        index: Dict[str, int] = {}
        low: Dict[str, int] = {}
        stack: List[str] = []
        on_stack: Set[str] = set()
        components: List[List[str]] = []

        def visit(node: str):
            index[node] = low[node] = len(index)
            stack.append(node)
            on_stack.add(node)
            work.append((node, iter(self.upstream(node))))

        for root in self._nodes:
            if root in index:
                continue
            work = []
            visit(root)
            while work:
                node, predecessors = work[-1]
                descended = False
                for pred in predecessors:
                    if pred not in index:
                        visit(pred)
                        descended = True
                        break
                    if pred in on_stack:
                        low[node] = min(low[node], index[pred])
                if descended:
                    continue

                work.pop()
                if work:
                    parent = work[-1][0]
                    low[parent] = min(low[parent], low[node])
                if low[node] == index[node]:
                    component = []
                    while True:
                        member = stack.pop()
                        on_stack.discard(member)
                        component.append(member)
                        if member == node:
                            break
                    components.append(component)

        return components

    def roots(self) -> List[str]:
        return [node for node in self._nodes if not self._incoming.get(node)]

    def leaves(self) -> List[str]:
        return [node for node in self._nodes if not self._outgoing.get(node)]

    def stats(self) -> Dict[str, int]:
        return {
            'nodes': len(self._nodes),
            'edges': len(self._edges),
            'jobs': len(self._job_names),
            'roots': len(self.roots()),
            'leaves': len(self.leaves()),
        }
