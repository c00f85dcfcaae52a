"""
Impact Report Models
====================

Pydantic models for the evidence handed to the downstream recommendation
layer. They mirror the engine's dataclasses but give the consumer a
validated JSON schema.

Usage:
    from analysis.report import ImpactReport

    report = ImpactReport.from_result(result)
    payload = report.model_dump_json(indent=2)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, Field

from frameworks.types import FrameworkDetectionResult, Route

from .impact_mapper import RouteImpact

if TYPE_CHECKING:
    from .pipeline import AnalysisResult

ReasonLiteral = Literal["direct", "layout", "import-graph"]
ConfidenceLiteral = Literal["high", "medium", "low", "none"]


class RouteModel(BaseModel):
    """One discovered route."""

    path: str = Field(description="Canonical URL path, always '/'-prefixed")
    directory: str = Field(description="Project-relative directory of the route")
    has_layout: bool = Field(False, description="Wrapped by a layout")
    is_auth_protected: bool = Field(False, description="Naming heuristic for auth")
    page_files: list[str] = Field(default_factory=list)
    is_dynamic: bool = Field(False, description="Has a dynamic segment")
    group: str | None = Field(None, description="First route group name, if any")
    server_files: list[str] = Field(default_factory=list)
    actions: list[str] = Field(default_factory=list)
    api_methods: list[str] = Field(default_factory=list)
    has_form_handler: bool = False
    has_api_endpoint: bool = False

    @classmethod
    def from_route(cls, route: Route) -> RouteModel:
        return cls.model_validate(route.to_dict())


class DetectionModel(BaseModel):
    framework: str | None = Field(None, description="Detected framework id")
    confidence: ConfidenceLiteral = Field(description="Detection confidence")
    reason: str = Field(description="Indicators that were found")
    router_type: str | None = None
    version: str | None = None

    @classmethod
    def from_result(cls, result: FrameworkDetectionResult) -> DetectionModel:
        return cls.model_validate(result.to_dict())


class RouteImpactModel(BaseModel):
    """Evidence against one affected route."""

    route: RouteModel
    files: list[str] = Field(description="Changed files implicating the route")
    reasons: list[ReasonLiteral] = Field(description="Distinct reasons, first seen first")

    @classmethod
    def from_impact(cls, impact: RouteImpact) -> RouteImpactModel:
        return cls(
            route=RouteModel.from_route(impact.route),
            files=list(impact.files),
            reasons=[reason.value for reason in impact.reasons],
        )


class ImpactReport(BaseModel):
    """Complete output of one analysis pass."""

    detection: DetectionModel
    routes: list[RouteModel] = Field(default_factory=list)
    affected: list[RouteImpactModel] = Field(default_factory=list)
    graph_files: int = Field(0, description="Source files in the import graph")
    graph_edges: int = Field(0, description="Resolved import edges")

    @classmethod
    def from_result(cls, result: AnalysisResult) -> ImpactReport:
        return cls(
            detection=DetectionModel.from_result(result.detection),
            routes=[RouteModel.from_route(r) for r in result.routes],
            affected=[RouteImpactModel.from_impact(i) for i in result.impacts.values()],
            graph_files=len(result.graph.imports),
            graph_edges=result.graph.edge_count,
        )

    def evidence(self) -> dict[str, list[str]]:
        """Route path -> contributing files."""
        return {impact.route.path: list(impact.files) for impact in self.affected}
