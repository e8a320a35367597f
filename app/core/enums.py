from enum import StrEnum


class TournamentStatus(StrEnum):
    LIVE = "live"
    COMPLETED = "completed"


class TournamentClosedReason(StrEnum):
    ENDED_BY_TIME = "ended_by_time"
    ROUND_LIMIT_REACHED = "round_limit_reached"
    NOT_LIVE = "not_live"


class SortOrder(StrEnum):
    ASC = "asc"
    DESC = "desc"


class PokemonSortField(StrEnum):
    ID = "id"
    NAME = "name"
