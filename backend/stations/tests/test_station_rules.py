import pytest
from decimal import Decimal

from django.core.exceptions import ValidationError

from ..models import StationConfig
from ..services.checkpoints import checkpoint_field_for
from ..services.destinations import is_mombasa_destination, is_zambia_station, station_currency
from ..services.station_rules import (
    FORMULA_APPLIED,
    FORMULA_ERROR,
    FORMULA_MISSING_DATA,
    StationRuleError,
    StationRuleResolver,
    resolve_station_allocation,
)


def station(name, rate="2757", going=0, returning=0, formula_going=None, formula_returning=None, **kwargs):
    return StationConfig(
        station_name=name,
        default_rate=Decimal(rate),
        default_liters_going=going,
        default_liters_returning=returning,
        formula_going=formula_going,
        formula_returning=formula_returning,
        **kwargs,
    )


@pytest.fixture
def infinity_with_formula():
    return station("Infinity", going=450, returning=400, formula_returning="(balance + extraLiters) / 7")


class TestDynamicStations:

    def test_formula_applied_with_journey_values(self, infinity_with_formula):
        resolver = StationRuleResolver(stations=[infinity_with_formula])
        result = resolver.resolve("INFINITY", "returning", total_liters=2300, extra_liters=60, balance=900)

        assert result.liters == 137
        assert isinstance(result.liters, int)
        assert result.formula_status == FORMULA_APPLIED
        assert result.formula_message == "Formula: (balance + extraLiters) / 7 = 137L"
        assert result.rate == Decimal("2757")
        assert result.currency == "TZS"

    def test_balance_formula_with_zero_balance_is_missing_data(self):
        config = station("INFINITY", returning=400, formula_returning="balance - 500")
        result = StationRuleResolver(stations=[config]).resolve(
            "INFINITY", "returning", total_liters=2300, extra_liters=60, balance=0,
        )

        assert result.liters == 0
        assert result.formula_status == FORMULA_MISSING_DATA
        assert "balance" in result.formula_message

    def test_formula_without_any_context_uses_static_default(self, infinity_with_formula):
        result = StationRuleResolver(stations=[infinity_with_formula]).resolve("INFINITY", "returning")

        assert result.liters == 400
        assert result.formula_status is None
        assert result.source == "dynamic_default"

    def test_direction_without_formula_uses_its_default(self, infinity_with_formula):
        result = StationRuleResolver(stations=[infinity_with_formula]).resolve(
            "INFINITY", "going", total_liters=2300, extra_liters=60, balance=900,
        )
        assert result.liters == 450
        assert result.formula_status is None

    def test_broken_formula_degrades_to_zero_liters(self):
        config = station("INFINITY", formula_returning="balance / (extraLiters - extraLiters)")
        result = StationRuleResolver(stations=[config]).resolve(
            "INFINITY", "returning", total_liters=2300, extra_liters=60, balance=900,
        )
        assert result.liters == 0
        assert result.formula_status == FORMULA_ERROR
        assert result.formula_message.startswith("Formula error:")

    def test_station_name_match_is_case_insensitive(self):
        config = station("  gbp morogoro ", rate="2710", returning=120)
        result = StationRuleResolver(stations=[config]).resolve("GBP Morogoro", "returning")
        assert result.liters == 120
        assert result.metadata["resolved_by"] == "dynamic"

    def test_dynamic_config_outranks_legacy_table(self):
        config = station("INFINITY", going=300)
        result = StationRuleResolver(stations=[config]).resolve("INFINITY", "going")
        assert result.liters == 300


class TestLegacyTable:

    @pytest.fixture
    def resolver(self):
        return StationRuleResolver(stations=[])

    def test_plain_legacy_station(self, resolver):
        result = resolver.resolve("LAKE CHILABOMBWE", "going")
        assert (result.liters, result.rate, result.currency) == (260, Decimal("1.2"), "USD")
        assert result.source == "legacy_table"

    def test_lusaka_override(self, resolver):
        assert resolver.resolve("LAKE KITWE", "going", destination="Lusaka").liters == 60

    def test_lubumbashi_override(self, resolver):
        assert resolver.resolve("LAKE NDOLA", "going", destination="LUBUMBASHI DRC").liters == 260

    def test_zambia_overrides_apply_going_only(self, resolver):
        assert resolver.resolve("LAKE NDOLA", "returning", destination="Lusaka").liters == 50

    @pytest.mark.parametrize("destination", ["MSA", "Mombasa", "DAR-MSA", None])
    def test_kange_returning_from_mombasa(self, resolver, destination):
        result = resolver.resolve("GBP KANGE", "returning", destination=destination)
        assert result.liters == 70
        assert result.metadata["rule"] == "tanga_return_mombasa"

    def test_kange_returning_elsewhere(self, resolver):
        result = resolver.resolve("GPB KANGE", "returning", destination="KIMSAMBA")
        assert result.metadata["rule"] == "default"

    def test_tunduma_is_priced_in_shillings(self, resolver):
        result = resolver.resolve("LAKE TUNDUMA", "returning")
        assert (result.liters, result.rate, result.currency) == (100, Decimal("2875"), "TZS")


class TestFallbackAndValidation:

    def test_unknown_station(self):
        result = StationRuleResolver(stations=[]).resolve("NOWHERE PETROL", "going")
        assert result.liters == 350
        assert result.rate == Decimal("1.2")
        assert result.source == "fallback"

    def test_unknown_direction(self):
        with pytest.raises(StationRuleError):
            StationRuleResolver(stations=[]).resolve("INFINITY", "sideways")

    def test_convenience_wrapper(self):
        result = resolve_station_allocation("INFINITY", "returning", stations=[])
        assert result.liters == 400


class TestDirectionToggling:

    def test_going_returning_going_reproduces_the_pair(self, infinity_with_formula):
        resolver = StationRuleResolver(stations=[infinity_with_formula])
        values = dict(total_liters=2300, extra_liters=60, balance=900)

        first = resolver.resolve("INFINITY", "going", "LUSAKA", **values)
        resolver.resolve("INFINITY", "returning", "DAR", **values)
        again = resolver.resolve("INFINITY", "going", "LUSAKA", **values)

        assert (again.liters, again.rate) == (first.liters, first.rate)


class TestDestinations:

    @pytest.mark.parametrize("destination,expected", [
        ("MSA", True),
        ("mombasa port", True),
        ("DAR-MSA", True),
        ("MSASA", False),
        ("KIMSAMBA", False),
        ("", False),
        (None, False),
    ])
    def test_mombasa_class(self, destination, expected):
        assert is_mombasa_destination(destination) is expected

    def test_zambia_stations(self):
        assert is_zambia_station("Lake Kapiri")
        assert not is_zambia_station("LAKE TUNDUMA")
        assert not is_zambia_station("INFINITY")

    def test_currency_follows_station(self):
        assert station_currency("LAKE CHINGOLA") == "USD"
        assert station_currency("GBP KANGE") == "TZS"


class TestCheckpointColumns:

    def test_configured_column_wins(self):
        config = station("INFINITY", fuel_record_field_going="dar_going")
        assert checkpoint_field_for("infinity", "going", stations=[config]) == "dar_going"

    def test_legacy_mapping_when_config_has_no_column(self):
        config = station("INFINITY")
        assert checkpoint_field_for("INFINITY", "returning", stations=[config]) == "mbeya_return"

    def test_kange_returning_posts_to_tanga(self):
        assert checkpoint_field_for("GBP KANGE", "returning", stations=[]) == "tanga_return"

    def test_unknown_station_has_no_column(self):
        assert checkpoint_field_for("NOWHERE", "going", stations=[]) is None


@pytest.mark.django_db
class TestStationConfigModel:

    def test_resolver_loads_active_configs(self):
        StationConfig.objects.create(station_name="INFINITY", default_rate=Decimal("2800"), default_liters_going=500)
        StationConfig.objects.create(station_name="LAKE KAPIRI", default_rate=Decimal("1.3"),
                                     default_liters_returning=300, is_active=False)

        assert StationRuleResolver().resolve("INFINITY", "going").rate == Decimal("2800")
        # inactive config falls through to the legacy table
        assert StationRuleResolver().resolve("LAKE KAPIRI", "returning").liters == 350

    def test_clean_rejects_bad_formula(self):
        config = station("INFINITY", formula_going="balance +")
        with pytest.raises(ValidationError) as exc:
            config.clean()
        assert "formula_going" in exc.value.message_dict
