"""Micro-benchmarks for record emission over a VPC flow log schema."""

from __future__ import annotations

import time
from collections.abc import Callable

from corpusgen.config import load_config_from_yaml
from corpusgen.fields import Field
from corpusgen.generator import Generator, JsonGenerator
from corpusgen.providers import ValueProviders
from corpusgen.state import GenState
from corpusgen.template.custom import CustomTemplateGenerator
from corpusgen.template.jinja import JinjaGenerator
from corpusgen.template.mako_engine import MakoGenerator

FLOW_FIELDS = [
    Field("Version", "long"),
    Field("AccountID", "long"),
    Field("InterfaceID", "keyword", example="eni-1235b8ca123456789"),
    Field("SrcAddr", "ip"),
    Field("DstAddr", "ip"),
    Field("SrcPort", "long"),
    Field("DstPort", "long"),
    Field("Protocol", "long"),
    Field("Packets", "long"),
    Field("Bytes", "long"),
    Field("Start", "date"),
    Field("End", "date"),
    Field("Action", "keyword"),
    Field("LogStatus", "keyword"),
]

FLOW_CONFIG = """
- name: Version
  value: 2
- name: AccountID
  value: 627286350134
- name: InterfaceID
  cardinality: 10
- name: SrcAddr
  cardinality: 1
- name: DstAddr
  cardinality: 100
- name: SrcPort
  range: 65535
- name: DstPort
  range: 65535
  cardinality: 100
- name: Protocol
  range: 256
- name: Packets
  range: 1048576
- name: Bytes
  range: 15728640
- name: Action
  enum: ["ACCEPT", "REJECT"]
- name: LogStatus
  enum: ["NODATA", "OK", "SKIPDATA"]
"""

CUSTOM_TEMPLATE = (
    b"{{.Version}} {{.AccountID}} {{.InterfaceID}} {{.SrcAddr}} {{.DstAddr}} {{.SrcPort}} "
    b"{{.DstPort}} {{.Protocol}} {{.Packets}} {{.Bytes}} {{.Start}} {{.End}} {{.Action}} "
    b"{{.LogStatus}}"
)

JINJA_TEMPLATE = (
    '{{ generate("Version") }} {{ generate("AccountID") }} {{ generate("InterfaceID") }} '
    '{{ generate("SrcAddr") }} {{ generate("DstAddr") }} {{ generate("SrcPort") }} '
    '{{ generate("DstPort") }} {{ generate("Protocol") }}'
    '{% set packets = generate("Packets") | int %} {{ packets }} {{ generate("Bytes") }} '
    '{{ generate("Start") }} {{ generate("End") }} {{ generate("Action") }}'
    '{% if packets == 0 %} NODATA{% else %} {{ generate("LogStatus") }}{% endif %}'
)

MAKO_TEMPLATE = (
    '${generate("Version")} ${generate("AccountID")} ${generate("InterfaceID")} '
    '${generate("SrcAddr")} ${generate("DstAddr")} ${generate("SrcPort")} '
    '${generate("DstPort")} ${generate("Protocol")} '
    '<% packets = int(generate("Packets")) %>${packets} ${generate("Bytes")} '
    '${generate("Start")} ${generate("End")} ${generate("Action")} '
    '${"NODATA" if packets == 0 else generate("LogStatus")}'
)


def benchmark_emit(
    factory: Callable[[], Generator], records: int = 10_000, runs: int = 3
) -> dict[str, float]:
    gen = factory()
    buf = bytearray()
    best = None
    for _ in range(runs):
        state = GenState()
        start = time.perf_counter()
        for _i in range(records):
            buf.clear()
            gen.emit(state, buf)
        elapsed = time.perf_counter() - start
        best = elapsed if best is None or elapsed < best else best
    ns_per_record = (best / records) * 1e9 if best else 0.0
    return {"records": records, "best_seconds": best or 0.0, "ns_per_record": ns_per_record}


if __name__ == "__main__":
    cfg = load_config_from_yaml(FLOW_CONFIG)
    cases: dict[str, Callable[[], Generator]] = {
        "json": lambda: JsonGenerator(cfg, FLOW_FIELDS, ValueProviders(seed=1)),
        "custom": lambda: CustomTemplateGenerator(
            CUSTOM_TEMPLATE, cfg, FLOW_FIELDS, ValueProviders(seed=1)
        ),
        "jinja": lambda: JinjaGenerator(JINJA_TEMPLATE, cfg, FLOW_FIELDS, ValueProviders(seed=1)),
        "mako": lambda: MakoGenerator(MAKO_TEMPLATE, cfg, FLOW_FIELDS, ValueProviders(seed=1)),
    }
    for name, factory in cases.items():
        print(name, benchmark_emit(factory))
