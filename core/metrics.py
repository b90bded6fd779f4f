"""Derived metrics for bidding records.

Every derived field of :class:`~core.bidding_record.BiddingRecord` is a pure
function of its raw fields. Missing inputs yield ``0`` instead of failing.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional, Union

from core.bidding_record import BiddingRecord

DateLike = Union[str, date, datetime, None]

_SECONDS_PER_DAY = 24 * 60 * 60

logger = logging.getLogger(__name__)


def _to_datetime(value: DateLike) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.debug("Ignoring unparseable date %r", value)
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def days_between(date_a: DateLike, date_b: DateLike) -> int:
    """Return the absolute number of days between two dates, rounded up.

    Returns 0 when either date is missing or cannot be parsed.
    """
    start = _to_datetime(date_a)
    end = _to_datetime(date_b)
    if start is None or end is None:
        return 0
    elapsed = abs((end - start).total_seconds())
    return math.ceil(elapsed / _SECONDS_PER_DAY)


def saving(valor_referencia: float, valor_disputa: float) -> float:
    return valor_referencia - valor_disputa


def percent_of(part: float, whole: float) -> float:
    """``part / whole * 100``, defined as 0 when ``whole`` is not positive."""
    if whole > 0:
        return part / whole * 100
    return 0


def compute_derived(record: BiddingRecord) -> Dict[str, Any]:
    """Compute every derived field from the record's raw fields."""
    valor_saving = saving(record.valor_referencia, record.valor_disputa)
    cca_final = days_between(record.inicio_cca, record.resultado_final)
    return {
        "valor_saving": valor_saving,
        "saving_percent": percent_of(valor_saving, record.valor_referencia),
        "percent_itens_fracassados": percent_of(
            record.itens_fracassados, record.itens_solicitados
        ),
        "dias_inicio_licitacao": days_between(record.inicio_suprimentos, record.data_disputa),
        "dias_inicio_cca_publicacao": days_between(record.inicio_cca, record.publicacao),
        "dias_publicacao_disputa": days_between(record.publicacao, record.data_disputa),
        "lead_time_orquestra": days_between(record.inicio_suprimentos, record.publicacao),
        "inicio_suprimentos_final": days_between(
            record.inicio_suprimentos, record.resultado_final
        ),
        # Headline KPI compared against meta_dias; same formula as cca_final.
        "lead_time_indicador": days_between(record.inicio_cca, record.resultado_final),
        "cca_final": cca_final,
    }


def refresh_derived(record: BiddingRecord) -> BiddingRecord:
    """Return a copy of ``record`` with all derived fields recomputed together."""
    return replace(record, **compute_derived(record))
