"""
F1 tool catalog and dispatch.

Maps each named tool to a CachingGateway operation and wraps the outcome
into the uniform success/error envelope returned to callers.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from f1_gateway.errors import GatewayError
from f1_gateway.gateway import CachingGateway

logger = logging.getLogger("tools")

SEASON_PROPERTY = {
    "type": "string",
    "description": "Season year (e.g., '2023', '2024') or 'current' for current season",
    "default": "current",
}

ROUND_PROPERTY = {
    "type": "number",
    "description": "Race round number (1-24 depending on season)",
    "minimum": 1,
    "maximum": 25,
}


@dataclass
class ToolResult:
    """Outcome of a single tool invocation."""
    success: bool
    envelope: Dict[str, Any]

    @property
    def error_message(self) -> Optional[str]:
        if self.success:
            return None
        return self.envelope["error"]["message"]


@dataclass
class ToolSpec:
    """A named tool: schema, gateway call and summary line."""
    name: str
    description: str
    invoke: Callable[[CachingGateway, Dict[str, Any]], Awaitable[Any]]
    summarize: Callable[[Dict[str, Any], Any], str]
    error_code: str
    properties: Dict[str, Any] = field(default_factory=dict)
    required: List[str] = field(default_factory=list)

    @property
    def input_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": self.properties,
            "required": self.required,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


# =============================================================================
# SUMMARY HELPERS
# =============================================================================

def _mr(data: Any, table: str) -> Dict[str, Any]:
    """Return MRData[table] from an Ergast-style body, or {} if absent."""
    if not isinstance(data, dict):
        return {}
    mr_data = data.get("MRData")
    if not isinstance(mr_data, dict):
        return {}
    table_data = mr_data.get(table)
    return table_data if isinstance(table_data, dict) else {}


def _first(items: Any) -> Dict[str, Any]:
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0]
    return {}


def _count(items: Any) -> int:
    return len(items) if isinstance(items, list) else 0


def _season_arg(args: Dict[str, Any]) -> str:
    return args.get("season") or "current"


def _races(data: Any) -> List[Any]:
    return _mr(data, "RaceTable").get("Races") or []


def _summarize_driver(args: Dict[str, Any], data: Any) -> str:
    driver = _first(_mr(data, "DriverTable").get("Drivers"))
    name = (
        f"{driver.get('givenName', '')} {driver.get('familyName', '')}".strip()
        if driver
        else "Driver not found"
    )
    return f"Driver details for {args.get('driverId')} in {_season_arg(args)} season: {name}"


def _summarize_next_race(args: Dict[str, Any], data: Any) -> str:
    race = _first(_races(data))
    return (
        f"Next F1 race: {race.get('raceName') or 'No upcoming race found'} "
        f"on {race.get('date') or 'TBD'}"
    )


# =============================================================================
# CATALOG
# =============================================================================

TOOLS: List[ToolSpec] = [
    # Seasons
    ToolSpec(
        name="get_f1_seasons",
        description=(
            "Get all available Formula 1 seasons. Returns a list of all seasons "
            "from 1950 to current year with basic information about each season."
        ),
        invoke=lambda gw, args: gw.get_seasons(),
        summarize=lambda args, data: (
            f"Retrieved {_count(_mr(data, 'SeasonTable').get('Seasons'))} F1 seasons"
        ),
        error_code="SEASONS_ERROR",
    ),
    ToolSpec(
        name="get_current_f1_season",
        description=(
            "Get information about the current Formula 1 season including season "
            "year, race schedule, and current status."
        ),
        invoke=lambda gw, args: gw.get_current_season(),
        summarize=lambda args, data: (
            f"Current F1 season: {_mr(data, 'RaceTable').get('season') or 'Unknown'}"
        ),
        error_code="CURRENT_SEASON_ERROR",
    ),
    # Races
    ToolSpec(
        name="get_f1_races",
        description=(
            "Get all Formula 1 races for a specific season including race names, "
            "dates, circuits, and locations."
        ),
        invoke=lambda gw, args: gw.get_races(args.get("season")),
        summarize=lambda args, data: (
            f"Retrieved {_count(_races(data))} races for {_season_arg(args)} season"
        ),
        error_code="RACES_ERROR",
        properties={"season": SEASON_PROPERTY},
    ),
    ToolSpec(
        name="get_f1_race_details",
        description=(
            "Get detailed information about a specific Formula 1 race including "
            "circuit details, date, time, and location."
        ),
        invoke=lambda gw, args: gw.get_race(args.get("season"), args.get("round")),
        summarize=lambda args, data: (
            f"Race details for {_season_arg(args)} season, round {args.get('round')}: "
            f"{_first(_races(data)).get('raceName') or 'Unknown'}"
        ),
        error_code="RACE_DETAILS_ERROR",
        properties={"season": SEASON_PROPERTY, "round": ROUND_PROPERTY},
        required=["round"],
    ),
    ToolSpec(
        name="get_current_f1_race",
        description="Get information about the most recent Formula 1 race of the current season.",
        invoke=lambda gw, args: gw.get_current_race(),
        summarize=lambda args, data: (
            f"Current F1 race: {_first(_races(data)).get('raceName') or 'No current race found'}"
        ),
        error_code="CURRENT_RACE_ERROR",
    ),
    ToolSpec(
        name="get_next_f1_race",
        description="Get information about the next scheduled Formula 1 race.",
        invoke=lambda gw, args: gw.get_next_race(),
        summarize=_summarize_next_race,
        error_code="NEXT_RACE_ERROR",
    ),
    # Drivers
    ToolSpec(
        name="get_f1_drivers",
        description=(
            "Get all Formula 1 drivers for a specific season including names, "
            "nationalities, and permanent numbers."
        ),
        invoke=lambda gw, args: gw.get_drivers(args.get("season")),
        summarize=lambda args, data: (
            f"Retrieved {_count(_mr(data, 'DriverTable').get('Drivers'))} drivers "
            f"for {_season_arg(args)} season"
        ),
        error_code="DRIVERS_ERROR",
        properties={"season": SEASON_PROPERTY},
    ),
    ToolSpec(
        name="get_f1_driver_details",
        description="Get detailed information about a specific Formula 1 driver.",
        invoke=lambda gw, args: gw.get_driver(args.get("driverId"), args.get("season")),
        summarize=_summarize_driver,
        error_code="DRIVER_DETAILS_ERROR",
        properties={
            "driverId": {
                "type": "string",
                "description": "Driver identifier (e.g., 'hamilton', 'max_verstappen')",
            },
            "season": SEASON_PROPERTY,
        },
        required=["driverId"],
    ),
    # Constructors
    ToolSpec(
        name="get_f1_constructors",
        description=(
            "Get all Formula 1 constructors (teams) for a specific season including "
            "names and nationalities."
        ),
        invoke=lambda gw, args: gw.get_constructors(args.get("season")),
        summarize=lambda args, data: (
            f"Retrieved {_count(_mr(data, 'ConstructorTable').get('Constructors'))} "
            f"constructors for {_season_arg(args)} season"
        ),
        error_code="CONSTRUCTORS_ERROR",
        properties={"season": SEASON_PROPERTY},
    ),
    ToolSpec(
        name="get_f1_constructor_details",
        description="Get detailed information about a specific Formula 1 constructor (team).",
        invoke=lambda gw, args: gw.get_constructor(
            args.get("constructorId"), args.get("season")
        ),
        summarize=lambda args, data: (
            f"Constructor details for {args.get('constructorId')} in "
            f"{_season_arg(args)} season: "
            f"{_first(_mr(data, 'ConstructorTable').get('Constructors')).get('name') or 'Constructor not found'}"
        ),
        error_code="CONSTRUCTOR_DETAILS_ERROR",
        properties={
            "constructorId": {
                "type": "string",
                "description": "Constructor identifier (e.g., 'ferrari', 'red_bull')",
            },
            "season": SEASON_PROPERTY,
        },
        required=["constructorId"],
    ),
    # Results and standings
    ToolSpec(
        name="get_f1_race_results",
        description=(
            "Get race results for a specific Formula 1 race including finishing "
            "positions, lap times, and points awarded."
        ),
        invoke=lambda gw, args: gw.get_race_results(args.get("season"), args.get("round")),
        summarize=lambda args, data: (
            f"Race results for {_season_arg(args)} season, round {args.get('round')}: "
            f"{_count(_first(_races(data)).get('Results'))} results"
        ),
        error_code="RACE_RESULTS_ERROR",
        properties={"season": SEASON_PROPERTY, "round": ROUND_PROPERTY},
        required=["round"],
    ),
    ToolSpec(
        name="get_f1_qualifying_results",
        description=(
            "Get qualifying results for a specific Formula 1 race including Q1, Q2, "
            "Q3 times and grid positions."
        ),
        invoke=lambda gw, args: gw.get_qualifying_results(
            args.get("season"), args.get("round")
        ),
        summarize=lambda args, data: (
            f"Qualifying results for {_season_arg(args)} season, round {args.get('round')}: "
            f"{_count(_first(_races(data)).get('QualifyingResults'))} results"
        ),
        error_code="QUALIFYING_RESULTS_ERROR",
        properties={"season": SEASON_PROPERTY, "round": ROUND_PROPERTY},
        required=["round"],
    ),
    ToolSpec(
        name="get_f1_driver_standings",
        description="Get the Formula 1 drivers' championship standings for a season.",
        invoke=lambda gw, args: gw.get_driver_standings(args.get("season")),
        summarize=lambda args, data: (
            f"Driver standings for {_season_arg(args)} season: "
            f"{_count(_first(_mr(data, 'StandingsTable').get('StandingsLists')).get('DriverStandings'))} drivers"
        ),
        error_code="DRIVER_STANDINGS_ERROR",
        properties={"season": SEASON_PROPERTY},
    ),
    ToolSpec(
        name="get_f1_constructor_standings",
        description="Get the Formula 1 constructors' championship standings for a season.",
        invoke=lambda gw, args: gw.get_constructor_standings(args.get("season")),
        summarize=lambda args, data: (
            f"Constructor standings for {_season_arg(args)} season: "
            f"{_count(_first(_mr(data, 'StandingsTable').get('StandingsLists')).get('ConstructorStandings'))} teams"
        ),
        error_code="CONSTRUCTOR_STANDINGS_ERROR",
        properties={"season": SEASON_PROPERTY},
    ),
]


class ToolRegistry:
    """Name-indexed tool catalog bound to one CachingGateway."""

    def __init__(self, gateway: CachingGateway, tools: Optional[List[ToolSpec]] = None):
        self._gateway = gateway
        self._tools: Dict[str, ToolSpec] = {t.name: t for t in (tools or TOOLS)}

    @property
    def gateway(self) -> CachingGateway:
        return self._gateway

    def names(self) -> List[str]:
        return list(self._tools)

    def list(self) -> List[ToolSpec]:
        return list(self._tools.values())

    def get(self, name: str) -> Optional[ToolSpec]:
        return self._tools.get(name)

    async def call(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> ToolResult:
        """
        Invoke a tool by name.

        Never raises: gateway errors and unexpected exceptions both come back
        as a failure envelope.
        """
        args = arguments or {}
        tool = self._tools.get(name)
        if tool is None:
            return _failure(f"Unknown tool: {name}", code="UNKNOWN_TOOL", kind="RequestError")

        logger.info(f"Calling tool {name} with {args}")
        try:
            data = await tool.invoke(self._gateway, args)
            summary = tool.summarize(args, data)
        except GatewayError as e:
            logger.error(f"Error executing tool {name}: [{e.kind}] {e.message}")
            error = e.to_dict()
            error["code"] = e.code or tool.error_code
            return ToolResult(success=False, envelope={"success": False, "error": error})
        except Exception as e:
            logger.exception(f"Unexpected error executing tool {name}")
            return _failure(f"Error executing tool: {e}", code=tool.error_code)

        logger.info(f"Tool {name} succeeded: {summary}")
        return ToolResult(
            success=True,
            envelope={"success": True, "data": data, "summary": summary},
        )


def _failure(message: str, code: str, kind: Optional[str] = None) -> ToolResult:
    error: Dict[str, Any] = {"message": message, "code": code}
    if kind:
        error["kind"] = kind
    return ToolResult(success=False, envelope={"success": False, "error": error})
