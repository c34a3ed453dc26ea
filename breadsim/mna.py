"""
Modified Nodal Analysis system assembly and solve.

Unknowns are the voltages of every non-ground node followed by one branch
current per stamped voltage source. Gate outputs are stamped before the
supply so the supply's branch current is always the last unknown.
"""

import logging
from typing import Dict, List, Mapping, Optional

import numpy as np

from .config import get_settings
from .errors import SingularCircuitError
from .graph import CircuitGraph
from .models import LogicGateModel, VoltageSourceModel, stamp_model
from .power import GROUND_NODE

logger = logging.getLogger(__name__)

POWER_CURRENT_KEY = "unified_power_current"


class MNASystem:
    """
    Dense MNA matrix ``A`` and right-hand side ``z`` for ``A x = z``.

    Args:
        node_ids: Node ids of the circuit; the ground node is left out
        source_count: Number of auxiliary rows to reserve
        ground_node: Id of the reference node
        gmin: Conductance tied from every node to ground
    """

    def __init__(self, node_ids, source_count=0, ground_node=GROUND_NODE, gmin=0.0):
        self.ground_node = ground_node
        self.node_index: Dict[str, int] = {}
        for node_id in node_ids:
            if node_id != ground_node and node_id not in self.node_index:
                self.node_index[node_id] = len(self.node_index)
        self.node_count = len(self.node_index)
        self.size = self.node_count + source_count
        self.matrix = np.zeros((self.size, self.size))
        self.rhs = np.zeros(self.size)
        self._next_aux = self.node_count

        for i in range(self.node_count):
            self.matrix[i, i] += gmin

    def index(self, node_id) -> Optional[int]:
        """Matrix index of a node, -1 for ground, None if the node is unknown."""
        if node_id == self.ground_node:
            return -1
        index = self.node_index.get(node_id)
        if index is None:
            logger.warning("Node %s has no matrix index; stamp skipped", node_id)
        return index

    def add_conductance(self, a, b, conductance):
        i, j = self.index(a), self.index(b)
        if i is None or j is None:
            return
        if i >= 0:
            self.matrix[i, i] += conductance
        if j >= 0:
            self.matrix[j, j] += conductance
        if i >= 0 and j >= 0:
            self.matrix[i, j] -= conductance
            self.matrix[j, i] -= conductance

    def add_current(self, a, b, current):
        """Current source driving ``current`` from ``a`` to ``b`` through the element."""
        i, j = self.index(a), self.index(b)
        if i is None or j is None:
            return
        if i >= 0:
            self.rhs[i] -= current
        if j >= 0:
            self.rhs[j] += current

    def add_voltage_source(self, positive, negative, voltage) -> Optional[int]:
        """
        Stamp an ideal source ``V(positive) - V(negative) = voltage``.

        Returns:
            int or None: The auxiliary row used, or None when the positive
            node is ground (the stamp is skipped)
        """
        p, n = self.index(positive), self.index(negative)
        if p is None or n is None or p < 0:
            return None
        if self._next_aux >= self.size:
            raise IndexError("No auxiliary rows left for voltage source")
        k = self._next_aux
        self._next_aux += 1
        self.matrix[p, k] += 1
        self.matrix[k, p] += 1
        if n >= 0:
            self.matrix[n, k] -= 1
            self.matrix[k, n] -= 1
        self.rhs[k] = voltage
        return k

    def solve(self) -> np.ndarray:
        """
        Solve the assembled system.

        Raises:
            SingularCircuitError: If the matrix is singular
        """
        if self.size == 0:
            return np.zeros(0)
        try:
            solution = np.linalg.solve(self.matrix, self.rhs)
        except np.linalg.LinAlgError as e:
            raise SingularCircuitError(f"Circuit matrix is singular: {e}") from e
        if not np.all(np.isfinite(solution)):
            raise SingularCircuitError("Circuit solution is not finite")
        return solution


def _stampable(model, node_ids, ground_node) -> bool:
    if model.positive_node == ground_node or model.positive_node not in node_ids:
        return False
    return model.negative_node == ground_node or model.negative_node in node_ids


def solve_circuit(graph: CircuitGraph, models: Mapping[str, object], settings=None) -> Dict[str, float]:
    """
    Assemble and solve the MNA system for one set of models.

    Args:
        graph: Circuit graph whose nodes define the unknowns
        models: Model id -> model, as built by ``create_component_models``
        settings: Optional Settings (for ``gmin``)

    Returns:
        dict: Node id -> voltage, the ground node at 0.0, plus
        ``unified_power_current`` holding the supply's branch current

    Raises:
        SingularCircuitError: If the system cannot be solved
    """
    settings = settings or get_settings()
    ordered: List[object] = []
    gates, supplies = [], []
    for model in models.values():
        if isinstance(model, LogicGateModel):
            gates.append(model)
        elif isinstance(model, VoltageSourceModel):
            supplies.append(model)
        else:
            ordered.append(model)

    sources = [m for m in gates + supplies if _stampable(m, graph.nodes, GROUND_NODE)]
    system = MNASystem(graph.nodes, len(sources), GROUND_NODE, settings.gmin)

    for model in ordered:
        stamp_model(model, system)
    supply_row = None
    for model in sources:
        row = stamp_model(model, system)
        if isinstance(model, VoltageSourceModel):
            supply_row = row

    solution = system.solve()

    voltages = {GROUND_NODE: 0.0}
    for node_id, index in system.node_index.items():
        voltages[node_id] = float(solution[index])
    voltages[POWER_CURRENT_KEY] = float(solution[supply_row]) if supply_row is not None else 0.0
    return voltages
