"""
Input normalization for wealth planning scenarios.

Client data arrives from forms, spreadsheets and older saved scenarios with
many alternate field spellings (English and Portuguese), numbers formatted
as Brazilian strings, and rates given either as fractions or percentages.
This module maps all of that onto the strict models in ``scenario`` in one
pass, so the engines only ever see canonical fields.

Malformed numbers never raise here: every lookup has a documented fallback.
"""

import unicodedata
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from ..config import EngineSettings, get_global_settings
from .numbers import normalize_rate, to_number
from .scenario import (
    MAX_AGE,
    Asset,
    CashInEvent,
    ContributionRule,
    Goal,
    MacroAssumptions,
    ScenarioInput,
    SuccessionCostConfig,
    TrackingRecord,
    WrapperSuccessionConfig,
)

# Alias tables: first present key wins.
CURRENT_AGE_KEYS = ("currentAge", "current_age", "idadeAtual")
RETIREMENT_AGE_KEYS = (
    "retirementAge",
    "retirement_age",
    "endContributionsAge",
    "idadeAposentadoria",
)
CONTRIBUTION_END_KEYS = (
    "contributionEndAge",
    "contribution_end_age",
    "endContributionsAge",
    "fimAportes",
)
LIFE_EXPECTANCY_KEYS = ("maxAge", "lifeExpectancy", "life_expectancy", "expectativaVida")
CONTRIBUTION_KEYS = (
    "monthlyContribution",
    "monthly_contribution",
    "monthlyAporte",
    "aporteMensal",
    "aporte",
)
DESIRED_INCOME_KEYS = (
    "monthlyIncomeRetirement",
    "monthlyRetirementIncome",
    "desired_monthly_income",
    "rendaAposentadoria",
    "monthlyDesiredIncome",
    "monthlyCostRetirement",
    "custoVidaAposentadoria",
    "retirementMonthlyExpense",
)
INFLATION_KEYS = ("inflation", "inflacao")
NOMINAL_RETURN_KEYS = ("nominalReturn", "nominal_return")
PROFILE_KEYS = ("profile", "perfil")
CONSERVATIVE_KEYS = ("returnRateConservative", "rentCons", "retornoConservador")
MODERATE_KEYS = ("returnRateModerate", "rentMod", "retornoModerado")
BOLD_KEYS = ("returnRateBold", "rentBold", "retornoArrojado")
FX_KEYS = ("fxRates", "fx_rates", "fx", "scenarioFx", "cambio")
STATE_KEYS = ("state", "successionState", "uf")
TIMELINE_KEYS = ("contributionTimeline", "contribution_rules", "contributionRanges")
GOAL_KEYS = ("financialGoals", "goals", "metas")
CASH_IN_KEYS = ("cashInEvents", "cash_in_events")

RULE_START_KEYS = (
    "startAge",
    "start_age",
    "fromAge",
    "from",
    "dos",
    "ageStart",
    "inicio",
    "idadeInicio",
)
RULE_END_KEYS = ("endAge", "end_age", "toAge", "to", "ate", "ageEnd", "fim", "idadeFim")
RULE_AMOUNT_KEYS = (
    "monthlyValue",
    "monthly_amount",
    "value",
    "amount",
    "monthlyContribution",
    "aporteMensal",
    "valorMensal",
    "valor",
)
RULE_KIND_KEYS = ("kind", "type", "mode")

ASSET_VALUE_KEYS = ("amountCurrency", "value", "amount", "valor")
ASSET_TYPE_KEYS = ("type", "assetType", "asset_type", "category")
EVENT_AGE_KEYS = ("age", "naIdade", "idade")
EVENT_VALUE_KEYS = ("value", "valor", "amount")

TRANSFER_TAX_KEYS = ("itcmdRate", "itcmd", "transferTaxRate", "transfer_tax_rate")
LEGAL_KEYS = ("legalPct", "legal_pct", "honorariosPct")
FEES_KEYS = ("feesPct", "fees_pct", "custasPct", "custasPercent")
FEES_FIXED_KEYS = ("feesFixed", "fees_fixed", "custasFixas")

ILLIQUID_TYPES = {
    "real_estate",
    "imovel",
    "imoveis",
    "bens",
    "business",
    "empresa",
    "vehicle",
    "veiculo",
    "other",
    "outros",
}
WRAPPER_TYPES = {"previdencia", "pension", "wrapper", "vgbl", "pgbl"}


def normalize_text(value: Any) -> str:
    """Trim, lowercase and strip accents."""
    text = "" if value is None else str(value)
    decomposed = unicodedata.normalize("NFD", text.strip().lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def first_present(raw: Optional[Mapping[str, Any]], keys: Sequence[str]) -> Any:
    """Value of the first alias present and not None."""
    if not raw:
        return None
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _as_list(value: Any) -> List[Any]:
    return list(value) if isinstance(value, (list, tuple)) else []


def _as_mapping(value: Any) -> Dict[str, Any]:
    return dict(value) if isinstance(value, Mapping) else {}


def _age(value: Any, fallback: int) -> int:
    number = to_number(value, fallback)
    return max(0, min(MAX_AGE, int(round(number))))


def normalize_profile(value: Any) -> str:
    profile = normalize_text(value or "moderado")
    if "conserv" in profile:
        return "conservative"
    if "arroj" in profile or "agress" in profile or "bold" in profile:
        return "bold"
    return "moderate"


def pick_nominal_return_by_profile(
    profile: str,
    conservative: Optional[float],
    moderate: Optional[float],
    bold: Optional[float],
) -> Optional[float]:
    """Select the profile's return, falling back across the other profiles."""
    if profile == "conservative":
        order = (conservative, moderate, bold)
    elif profile == "bold":
        order = (bold, moderate, conservative)
    else:
        order = (moderate, conservative, bold)
    for rate in order:
        if rate is not None:
            return rate
    return None


def normalize_assumptions(
    raw: Mapping[str, Any], settings: EngineSettings
) -> MacroAssumptions:
    nested = _as_mapping(raw.get("assumptions"))
    profile = normalize_profile(first_present(raw, PROFILE_KEYS))
    conservative = normalize_rate(first_present(raw, CONSERVATIVE_KEYS), None)
    moderate = normalize_rate(first_present(raw, MODERATE_KEYS), None)
    bold = normalize_rate(first_present(raw, BOLD_KEYS), None)

    nominal = normalize_rate(first_present(nested, NOMINAL_RETURN_KEYS), None)
    if nominal is None:
        nominal = normalize_rate(first_present(raw, NOMINAL_RETURN_KEYS), None)
    if nominal is None:
        nominal = pick_nominal_return_by_profile(profile, conservative, moderate, bold)
    if nominal is None or nominal <= -1:
        nominal = settings.default_nominal_return

    inflation = normalize_rate(first_present(nested, INFLATION_KEYS), None)
    if inflation is None:
        inflation = normalize_rate(first_present(raw, INFLATION_KEYS), None)
    if inflation is None or inflation <= -1:
        inflation = settings.default_inflation

    return MacroAssumptions(
        nominal_return=nominal,
        inflation=inflation,
        profile=profile,
        return_conservative=conservative,
        return_moderate=moderate,
        return_bold=bold,
    )


def asset_bucket(asset_type: str) -> str:
    """Map an asset type label onto a liquidity bucket."""
    kind = normalize_text(asset_type)
    if kind in ILLIQUID_TYPES:
        return "illiquid"
    if kind in WRAPPER_TYPES:
        return "wrapper"
    return "financial"


def normalize_asset(raw: Mapping[str, Any]) -> Asset:
    asset_type = normalize_text(first_present(raw, ASSET_TYPE_KEYS) or "financial")
    bucket = asset_bucket(asset_type)
    subtype = None
    if bucket == "wrapper":
        plan = first_present(_as_mapping(raw.get("previdencia")), ("planType",))
        plan = plan or first_present(raw, ("planType", "wrapperSubtype", "wrapper_subtype"))
        if not plan and asset_type in ("vgbl", "pgbl"):
            plan = asset_type
        subtype = "PGBL" if normalize_text(plan) == "pgbl" else "VGBL"

    return Asset(
        value=max(0.0, to_number(first_present(raw, ASSET_VALUE_KEYS), 0.0)),
        currency=str(raw.get("currency") or "BRL"),
        bucket=bucket,
        asset_type=asset_type,
        wrapper_subtype=subtype,
        description=str(raw.get("description") or raw.get("name") or ""),
    )


def normalize_rule(raw: Mapping[str, Any]) -> ContributionRule:
    """Canonical contribution rule; withdrawal flags force a negative amount."""
    start_age = _age(first_present(raw, RULE_START_KEYS), 0)
    end_raw = first_present(raw, RULE_END_KEYS)
    end_age = MAX_AGE if end_raw is None else _age(end_raw, MAX_AGE)

    amount = to_number(first_present(raw, RULE_AMOUNT_KEYS), 0.0)
    kind = normalize_text(first_present(raw, RULE_KIND_KEYS))
    is_withdrawal = (
        raw.get("isWithdrawal") is True
        or raw.get("withdrawal") is True
        or "resgate" in kind
        or "withdraw" in kind
    )
    if is_withdrawal:
        amount = -abs(amount)

    return ContributionRule(
        start_age=start_age,
        end_age=end_age,
        monthly_amount=amount,
        enabled=raw.get("enabled") is not False,
    )


def normalize_goal(raw: Mapping[str, Any]) -> Optional[Goal]:
    kind = normalize_text(raw.get("type") or raw.get("kind") or "impact")
    age = to_number(first_present(raw, EVENT_AGE_KEYS), 0.0)
    amount = to_number(first_present(raw, EVENT_VALUE_KEYS), 0.0)
    if age <= 0 or amount <= 0 or round(age) > MAX_AGE:
        return None
    return Goal(
        age=_age(age, 0),
        amount=amount,
        kind="impacting" if "impact" in kind else "cosmetic",
        name=str(raw.get("name") or raw.get("titulo") or "Goal"),
    )


def normalize_cash_in(raw: Mapping[str, Any]) -> Optional[CashInEvent]:
    if raw.get("enabled") is False:
        return None
    age = to_number(first_present(raw, EVENT_AGE_KEYS), 0.0)
    amount = to_number(first_present(raw, EVENT_VALUE_KEYS), 0.0)
    if age <= 0 or amount <= 0 or round(age) > MAX_AGE:
        return None
    return CashInEvent(age=_age(age, 0), amount=amount)


def normalize_fx_rates(raw: Any) -> Dict[str, float]:
    rates = {}
    for key, value in _as_mapping(raw).items():
        rate = to_number(value, None)
        if rate is not None and rate > 0:
            rates[str(key).upper()] = rate
    return rates


def _succession_source(raw: Mapping[str, Any]) -> Dict[str, Any]:
    for candidate in (
        raw.get("successionCosts"),
        raw.get("successionConfig"),
        _as_mapping(raw.get("adjustments")).get("successionCosts"),
        _as_mapping(raw.get("settings")).get("successionCosts"),
    ):
        if isinstance(candidate, Mapping) and candidate:
            return dict(candidate)
    return {}


def normalize_succession_costs(raw: Mapping[str, Any]) -> SuccessionCostConfig:
    costs = _succession_source(raw)
    fees_fixed = to_number(first_present(costs, FEES_FIXED_KEYS), None)
    return SuccessionCostConfig(
        transfer_tax_rate=normalize_rate(first_present(costs, TRANSFER_TAX_KEYS), None),
        legal_pct=normalize_rate(first_present(costs, LEGAL_KEYS), None),
        fees_pct=normalize_rate(first_present(costs, FEES_KEYS), None),
        fees_fixed=None if fees_fixed is None else max(0.0, fees_fixed),
    )


def normalize_wrapper_succession(raw: Mapping[str, Any]) -> WrapperSuccessionConfig:
    cfg = _as_mapping(raw.get("previdenciaSuccession") or raw.get("wrapperSuccession"))
    exclude = first_present(cfg, ("excludeFromInventory", "exclude_from_estate"))
    apply_tax = first_present(cfg, ("applyITCMD", "apply_transfer_tax"))
    return WrapperSuccessionConfig(
        exclude_from_estate=True if exclude is None else bool(exclude),
        apply_transfer_tax=False if apply_tax is None else bool(apply_tax),
    )


def _normalize_each(items: Iterable[Any], normalizer) -> List[Any]:
    result = []
    for item in items:
        if not isinstance(item, Mapping):
            continue
        normalized = normalizer(item)
        if normalized is not None:
            result.append(normalized)
    return result


def normalize_scenario(
    raw: Any, settings: Optional[EngineSettings] = None
) -> ScenarioInput:
    """
    Map raw client data onto a strict ScenarioInput.

    Args:
        raw: Mapping with any accepted field aliases, or a ScenarioInput
        settings: Engine settings supplying economic fallbacks

    Returns:
        ScenarioInput ready for the engines
    """
    if isinstance(raw, ScenarioInput):
        return raw
    settings = settings or get_global_settings()
    raw = _as_mapping(raw)

    current_age = _age(first_present(raw, CURRENT_AGE_KEYS), 30)
    retirement_age = _age(first_present(raw, RETIREMENT_AGE_KEYS), 60)
    contribution_end_age = _age(first_present(raw, CONTRIBUTION_END_KEYS), retirement_age)
    life_expectancy = _age(first_present(raw, LIFE_EXPECTANCY_KEYS), 90)

    timeline = _as_list(first_present(raw, TIMELINE_KEYS))

    return ScenarioInput(
        current_age=current_age,
        contribution_end_age=contribution_end_age,
        retirement_age=retirement_age,
        life_expectancy=life_expectancy,
        monthly_contribution=to_number(first_present(raw, CONTRIBUTION_KEYS), 0.0),
        desired_monthly_income=max(
            0.0, to_number(first_present(raw, DESIRED_INCOME_KEYS), 0.0)
        ),
        assumptions=normalize_assumptions(raw, settings),
        fx_rates=normalize_fx_rates(first_present(raw, FX_KEYS)),
        assets=_normalize_each(_as_list(raw.get("assets")), normalize_asset),
        contribution_rules=_normalize_each(timeline, normalize_rule),
        goals=_normalize_each(_as_list(first_present(raw, GOAL_KEYS)), normalize_goal),
        cash_in_events=_normalize_each(
            _as_list(first_present(raw, CASH_IN_KEYS)), normalize_cash_in
        ),
        state=str(first_present(raw, STATE_KEYS) or settings.default_state),
        succession=normalize_succession_costs(raw),
        wrapper_succession=normalize_wrapper_succession(raw),
    )


def normalize_tracking_record(raw: Mapping[str, Any]) -> Optional[TrackingRecord]:
    """Canonical tracking record, or None when year/month are unusable."""
    year = int(to_number(first_present(raw, ("year", "ano")), 0.0))
    month = int(to_number(first_present(raw, ("month", "mes")), 0.0))
    if not 1900 <= year <= 2200 or not 1 <= month <= 12:
        return None
    return TrackingRecord(
        year=year,
        month=month,
        planned_contribution=to_number(
            first_present(raw, ("aportePlanejado", "plannedContribution", "planned_contribution")),
            0.0,
        ),
        actual_contribution=to_number(
            first_present(raw, ("aporteReal", "actualContribution", "actual_contribution")),
            0.0,
        ),
        actual_monthly_return_pct=to_number(
            first_present(
                raw,
                ("rentabilidadeRealPct", "actualMonthlyReturnPct", "actual_monthly_return_pct"),
            ),
            0.0,
        ),
        actual_monthly_inflation_pct=to_number(
            first_present(
                raw,
                ("inflacaoPct", "actualMonthlyInflationPct", "actual_monthly_inflation_pct"),
            ),
            0.0,
        ),
    )


def normalize_tracking_records(raw: Iterable[Any]) -> List[TrackingRecord]:
    """Canonical tracking records, preserving input order."""
    return _normalize_each(_as_list(raw), normalize_tracking_record)
