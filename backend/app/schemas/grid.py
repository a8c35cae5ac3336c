from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


# Nodes

class GeneratorNodeSchema(BaseModel):
    key: str = Field(min_length=1)
    generation: float = Field(ge=0)
    x: float = 0.0
    y: float = 0.0
    name: str | None = None
    allow_redispatch: bool = False
    redispatch_min: float | None = None
    redispatch_max: float | None = None


class LoadNodeSchema(BaseModel):
    key: str = Field(min_length=1)
    load: float = Field(ge=0)
    x: float = 0.0
    y: float = 0.0
    name: str | None = None
    allow_redispatch: bool = False
    redispatch_min: float | None = None
    redispatch_max: float | None = None


class SubstationNodeSchema(BaseModel):
    key: str = Field(min_length=1)
    buses: int = Field(default=1, ge=1)
    x: float = 0.0
    y: float = 0.0
    name: str | None = None


# Lines

class RegularLineSchema(BaseModel):
    key: str = Field(min_length=1)
    node_from_key: str
    bus_from: int = Field(default=0, ge=0)
    node_to_key: str
    bus_to: int = Field(default=0, ge=0)
    reactance: float = Field(gt=0)
    limit: float = Field(ge=0)
    name: str | None = None
    phase_deg: float | None = None
    shift_min: float | None = None
    shift_max: float | None = None


class PSTLineSchema(RegularLineSchema):
    phase_deg: float
    shift_min: float
    shift_max: float


class HVDCLineSchema(BaseModel):
    key: str = Field(min_length=1)
    node_from_key: str
    bus_from: int = Field(default=0, ge=0)
    node_to_key: str
    bus_to: int = Field(default=0, ge=0)
    set_flow: float
    flow_min: float
    flow_max: float
    name: str | None = None


class GridNodesSchema(BaseModel):
    generators: list[GeneratorNodeSchema] = Field(default_factory=list)
    loads: list[LoadNodeSchema] = Field(default_factory=list)
    substations: list[SubstationNodeSchema] = Field(default_factory=list)


class GridLinesSchema(BaseModel):
    regular: list[RegularLineSchema] = Field(default_factory=list)
    pst: list[PSTLineSchema] = Field(default_factory=list)
    hvdc: list[HVDCLineSchema] = Field(default_factory=list)


class GridConfigSchema(BaseModel):
    nodes: GridNodesSchema = Field(default_factory=GridNodesSchema)
    lines: GridLinesSchema = Field(default_factory=GridLinesSchema)


# Actions

class RedispatchActionSchema(BaseModel):
    kind: Literal["redispatch"] = "redispatch"
    node_key: str
    power: float = Field(ge=0)


class BusChangeActionSchema(BaseModel):
    kind: Literal["buschange"] = "buschange"
    substation_key: str
    line_key: str
    bus: int = Field(ge=1)


class HVDCActionSchema(BaseModel):
    kind: Literal["hvdc"] = "hvdc"
    hvdc_key: str
    flow: float


GridActionSchema = Annotated[
    Union[RedispatchActionSchema, BusChangeActionSchema, HVDCActionSchema],
    Field(discriminator="kind"),
]


class GridSolveRequest(BaseModel):
    grid: GridConfigSchema
    actions: list[GridActionSchema] = Field(default_factory=list)


# Results

class LineFlowResponse(BaseModel):
    key: str
    kind: str  # "regular", "pst" or "hvdc"
    name: str | None = None
    node_from_key: str
    bus_from: int
    node_to_key: str
    bus_to: int
    reactance: float
    limit: float
    phase_deg: float
    d_theta: float
    phi: float
    flow_pu: float
    flow_mw: float
    overloaded: bool
    loading_pct: float


class IslandSummary(BaseModel):
    index: int
    status: str  # "solved", "imbalanced" or "singular"
    net_power_mw: float
    node_keys: list[str]
    line_keys: list[str]


class GridSolveResponse(BaseModel):
    solve_id: str
    balance_mw: float
    lines: dict[str, LineFlowResponse]  # line key -> flow
    unsolved_lines: list[str]
    skipped_lines: list[str] = []  # no flow in a solved island (reactance <= 0)
    islands: list[IslandSummary]
    overloaded_lines: list[str] = []
    duration_ms: float = 0.0
