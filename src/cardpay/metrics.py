"""In-process metrics for the card payment console.

Counters and gauges are kept in module-level objects and can be dumped
in the Prometheus text exposition format with
:func:`generate_metrics_text`.  Nothing is served over the network; the
shell logs a snapshot when it exits and the tests read values back via
:meth:`Metric.value`.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Tuple


class Metric:
    """Base class for all metrics."""

    kind = "untyped"

    def __init__(self, name: str, description: str, label_names: Iterable[str]):
        self.name = name
        self.description = description
        self.label_names = list(label_names)
        self._values: Dict[Tuple[str, ...], float] = defaultdict(float)
        _METRIC_REGISTRY.append(self)

    def _key(self, labels: Dict[str, str]) -> Tuple[str, ...]:
        unknown = set(labels) - set(self.label_names)
        if unknown:
            raise ValueError(f"{self.name}: unknown labels {sorted(unknown)}")
        return tuple(str(labels.get(k, "")) for k in self.label_names)

    def _format_labels(self, label_values: Tuple[str, ...]) -> str:
        if not self.label_names:
            return ""
        pairs = [f'{name}="{value}"' for name, value in zip(self.label_names, label_values)]
        return "{" + ",".join(pairs) + "}"

    def value(self, **labels: str) -> float:
        """Current value for one label combination (0 if never touched)."""
        return self._values.get(self._key(labels), 0.0)

    def reset(self) -> None:
        self._values.clear()

    def to_prometheus(self) -> List[str]:
        """Return a list of strings in Prometheus exposition format."""
        lines = [f"# HELP {self.name} {self.description}", f"# TYPE {self.name} {self.kind}"]
        for label_values, value in self._values.items():
            lines.append(f"{self.name}{self._format_labels(label_values)} {value:g}")
        return lines


class Counter(Metric):
    """Monotonic counter.  ``CHARGES.inc(outcome="success")``."""

    kind = "counter"

    def inc(self, amount: float = 1.0, **labels: str) -> None:
        if amount < 0:
            raise ValueError("Counters can only increase")
        self._values[self._key(labels)] += amount


class Gauge(Metric):
    """Gauge metric; may go up or down."""

    kind = "gauge"

    def set(self, value: float, **labels: str) -> None:
        self._values[self._key(labels)] = float(value)


_METRIC_REGISTRY: List[Metric] = []


def generate_metrics_text() -> str:
    """Generate the text representation of all registered metrics."""
    lines: List[str] = []
    for metric in _METRIC_REGISTRY:
        lines.extend(metric.to_prometheus())
    return "\n".join(lines)


def reset_all() -> None:
    for metric in _METRIC_REGISTRY:
        metric.reset()


# -----------------------------------------------------------------------------
# Metrics used by the payment console.
# -----------------------------------------------------------------------------

CARDS_REGISTERED_TOTAL = Counter(
    name="cards_registered_total",
    description="Number of cards added to the registry",
    label_names=[],
)

# outcome is "success" or "failure"
CHARGE_ATTEMPTS_TOTAL = Counter(
    name="charge_attempts_total",
    description="Charge attempts against card balances, labelled by outcome",
    label_names=["outcome"],
)

CHECKOUT_ERROR_TOTAL = Counter(
    name="checkout_error_total",
    description="Total number of checkout errors, labelled by type",
    label_names=["type"],
)

CART_TOTAL = Gauge(
    name="cart_total",
    description="Current shopping cart total",
    label_names=[],
)
