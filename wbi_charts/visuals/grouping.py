"""Group tidy observations into ordered per-(country, indicator) series."""

from __future__ import annotations

from collections.abc import Callable, Sequence

from ..core.errors import EmptyInput, NoNumericValues, NoValidYears
from ..core.models import Observation, Series, SeriesKey

LABEL_SEPARATOR = " — "


def validate_observations(observations: Sequence[Observation]) -> None:
    """Raise the matching RenderError when nothing in the input is plottable."""
    if not observations:
        raise EmptyInput()
    if not any(o.year != 0 for o in observations):
        raise NoValidYears()
    if not any(o.value is not None for o in observations):
        raise NoNumericValues()


def make_label_rule(observations: Sequence[Observation]) -> Callable[[str, str], str]:
    """Return a ``(country_name, indicator_name) -> label`` function.

    Labels drop whichever dimension does not vary across the input:
    one indicator over many countries shows the country, one country over
    many indicators shows the indicator, anything else shows both.
    """
    countries = {o.country_iso3 for o in observations}
    indicators = {o.indicator_id for o in observations}
    one_country = len(countries) == 1
    one_indicator = len(indicators) == 1

    def label(country_name: str, indicator_name: str) -> str:
        if one_indicator and not one_country:
            return country_name
        if one_country and not one_indicator:
            return indicator_name
        return f"{country_name}{LABEL_SEPARATOR}{indicator_name}"

    return label


def group_series(observations: Sequence[Observation]) -> list[Series]:
    """Group observations into series sorted by (country name, indicator name).

    Rows with year 0 or no value are skipped. When one series holds the same
    year twice, the later row in input order wins.
    """
    validate_observations(observations)

    country_names: dict[str, str] = {}
    indicator_names: dict[str, str] = {}
    groups: dict[SeriesKey, dict[int, float]] = {}

    for o in observations:
        country_names.setdefault(o.country_iso3, o.country_name)
        indicator_names.setdefault(o.indicator_id, o.indicator_name)
        if o.year == 0 or o.value is None:
            continue
        key = SeriesKey(country=o.country_iso3, indicator=o.indicator_id)
        groups.setdefault(key, {})[o.year] = float(o.value)

    label_for = make_label_rule(observations)
    series: list[Series] = []
    for key, by_year in groups.items():
        country_name = country_names.get(key.country) or key.country
        indicator_name = indicator_names.get(key.indicator) or key.indicator
        series.append(
            Series(
                key=key,
                country_name=country_name,
                indicator_name=indicator_name,
                label=label_for(country_name, indicator_name),
                points=tuple(sorted(by_year.items())),
            )
        )

    series.sort(key=lambda s: (s.country_name, s.indicator_name, s.key))
    return series
