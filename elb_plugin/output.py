"""mackerel-agent plugin output.

In metadata mode the agent expects a header line followed by the graph
definitions as JSON. Otherwise it reads one ``key<TAB>value<TAB>epoch`` line
per metric. Values of the previous run are kept in a JSON state file so that
counter metrics can be reported as per-minute rates.
"""

from __future__ import annotations

import json
import sys
import time
from dataclasses import asdict
from typing import Dict, Mapping, Optional, TextIO, Tuple

from .log import get_logger
from .metrics.base import GraphDefinition

META_HEADER = "# mackerel-agent-plugin"
LAST_TIME_KEY = "_lastTime"
MAX_DIFF_SECONDS = 600

logger = get_logger(__name__)


def format_value(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:f}"


def calc_diff(value: float, now: int, last_value: float, last_time: int) -> float:
    """Per-minute rate between two samples of a counter."""
    elapsed = now - last_time
    if elapsed <= 0:
        raise ValueError("no time elapsed since last sample")
    if elapsed > MAX_DIFF_SECONDS:
        raise ValueError(f"last sample is too old ({elapsed}s)")
    diff = (value - last_value) * 60 / elapsed
    if diff < 0:
        raise ValueError("counter seems to have been reset")
    return diff


class PluginOutput:
    def __init__(self, tempfile: str) -> None:
        self.tempfile = tempfile

    def write_definitions(
        self, schema: Mapping[str, GraphDefinition], stream: Optional[TextIO] = None
    ) -> None:
        stream = stream or sys.stdout
        graphs = {graph_id: asdict(graph) for graph_id, graph in schema.items()}
        stream.write(META_HEADER + "\n")
        stream.write(json.dumps({"graphs": graphs}) + "\n")

    def write_values(
        self,
        schema: Mapping[str, GraphDefinition],
        snapshot: Mapping[str, float],
        stream: Optional[TextIO] = None,
        now: Optional[int] = None,
    ) -> None:
        stream = stream or sys.stdout
        now = int(time.time()) if now is None else now
        last_values, last_time = self.load_last_values()

        for graph_id, graph in schema.items():
            for metric in graph.metrics:
                if metric.name not in snapshot:
                    continue
                value = snapshot[metric.name]
                if metric.diff:
                    if metric.name not in last_values or last_time is None:
                        logger.info("%s does not exist at last fetch", metric.name)
                        continue
                    try:
                        value = calc_diff(value, now, last_values[metric.name], last_time)
                    except ValueError as exc:
                        logger.info("Skipping %s: %s", metric.name, exc)
                        continue
                stream.write(f"{graph_id}.{metric.name}\t{format_value(value)}\t{now}\n")

        self.save_values(snapshot, now)

    def load_last_values(self) -> Tuple[Dict[str, float], Optional[int]]:
        try:
            with open(self.tempfile, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}, None
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable state file %s: %s", self.tempfile, exc)
            return {}, None

        if not isinstance(data, dict):
            return {}, None
        last_time = data.pop(LAST_TIME_KEY, None)
        values = {
            k: float(v)
            for k, v in data.items()
            if isinstance(v, (int, float)) and not isinstance(v, bool)
        }
        return values, int(last_time) if isinstance(last_time, (int, float)) else None

    def save_values(self, snapshot: Mapping[str, float], now: int) -> None:
        data: Dict[str, float] = dict(snapshot)
        data[LAST_TIME_KEY] = now
        try:
            with open(self.tempfile, "w", encoding="utf-8") as f:
                json.dump(data, f)
        except OSError as exc:
            logger.warning("Could not write state file %s: %s", self.tempfile, exc)
