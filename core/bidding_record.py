"""Bidding process record and the tables describing its fields."""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field, fields, replace
from datetime import date
from enum import Enum
from typing import Any, Dict, Tuple


class StatusDisputa(str, Enum):
    CANCELADA = "CANCELADA"
    FRACASSADA = "FRACASSADA"
    DESERTA = "DESERTA"
    PUBLICADA = "PUBLICADA"
    SUSPENSA = "SUSPENSA"
    CONCLUIDA = "CONCLUÍDA"


def _current_year() -> str:
    return str(date.today().year)


@dataclass(frozen=True)
class BiddingRecord:
    """One tracked procurement dispute. Field order is the export column order."""

    id: str = ""
    entidade: str = ""
    num_disputa: str = ""
    num_processo: str = ""
    data_disputa: str = ""
    mes: str = ""
    ano: str = field(default_factory=_current_year)
    objeto: str = ""
    categoria: str = ""
    responsavel_tecnico: str = ""
    gestor_imediato: str = ""
    regulamento: str = ""
    registro_preco: bool = False
    minuta: bool = False
    tipo: str = ""
    meta_dias: int = 25
    status_disputa: str = StatusDisputa.PUBLICADA.value
    participantes: int = 0
    valor_referencia: float = 0
    valor_disputa: float = 0
    valor_saving: float = 0
    saving_percent: float = 0
    itens_solicitados: int = 0
    itens_licitados: int = 0
    itens_fracassados: int = 0
    percent_itens_fracassados: float = 0
    status_sucesso: str = ""
    observacao: str = ""
    motivo_cancelamento: str = ""
    inicio_suprimentos: str = ""
    inicio_cca: str = ""
    publicacao: str = ""
    resultado_final: str = ""
    dias_inicio_licitacao: int = 0
    dias_inicio_cca_publicacao: int = 0
    dias_publicacao_disputa: int = 0
    lead_time_orquestra: int = 0
    inicio_suprimentos_final: int = 0
    lead_time_indicador: int = 0
    cca_final: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a plain dict in declared field order."""
        return asdict(self)

    def with_values(self, **changes: Any) -> "BiddingRecord":
        return replace(self, **changes)


FIELD_NAMES: Tuple[str, ...] = tuple(f.name for f in fields(BiddingRecord))

DATE_FIELDS = frozenset(
    {"data_disputa", "inicio_suprimentos", "inicio_cca", "publicacao", "resultado_final"}
)
BOOLEAN_FIELDS = frozenset({"registro_preco", "minuta"})
INTEGER_FIELDS = frozenset(
    {"meta_dias", "participantes", "itens_solicitados", "itens_licitados", "itens_fracassados"}
)
DECIMAL_FIELDS = frozenset({"valor_referencia", "valor_disputa"})
NUMERIC_FIELDS = INTEGER_FIELDS | DECIMAL_FIELDS

# Never user-edited; always recomputed from the raw fields.
DERIVED_FIELDS: Tuple[str, ...] = (
    "valor_saving",
    "saving_percent",
    "percent_itens_fracassados",
    "dias_inicio_licitacao",
    "dias_inicio_cca_publicacao",
    "dias_publicacao_disputa",
    "lead_time_orquestra",
    "inicio_suprimentos_final",
    "lead_time_indicador",
    "cca_final",
)

EDITABLE_FIELDS = frozenset(FIELD_NAMES) - {"id"} - set(DERIVED_FIELDS)

# Free-text fields searched by the table view.
SEARCH_FIELDS: Tuple[str, ...] = ("entidade", "num_disputa", "num_processo", "objeto")

_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD_BOUNDARY = re.compile(r"([a-z\d])([A-Z])")


def canonical_field_name(key: str) -> str:
    """Map a legacy camelCase key (e.g. ``diasInicioCCAPublicacao``) to snake_case."""
    name = _ACRONYM_BOUNDARY.sub(r"\1_\2", str(key))
    name = _WORD_BOUNDARY.sub(r"\1_\2", name)
    return name.lower()


def blank_record(
    *,
    meta_dias: int = 25,
    status: str = StatusDisputa.PUBLICADA.value,
) -> BiddingRecord:
    """Template used when the user starts a new record."""
    return BiddingRecord(meta_dias=meta_dias, status_disputa=status)
