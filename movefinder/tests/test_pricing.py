import pytest
from datetime import date
from movefinder.core.enums import MoveType, HomeSize
from movefinder.schemas.pricing import ItemLine, MoveDetails
from movefinder.services.pricing import (
    calculate_item_cost,
    calculate_total_quote,
    get_pricing_breakdown,
    estimate_move_duration,
    estimate_crew_cost,
    get_moving_tips,
    lookup_item,
    round_half_up,
)
from movefinder.services.catalog import ITEM_CATALOG


def _details(**kwargs):
    data = {
        "move_type": MoveType.LOCAL,
        "estimated_size": HomeSize.TWO_BEDROOM,
        "move_date": date(2025, 11, 12),
        "from_address": "123 Oak St, Austin",
        "to_address": "456 Elm St, Austin",
    }
    data.update(kwargs)
    return MoveDetails(**data)


@pytest.mark.pricing
class TestItemCost:

    def test_piano_local(self):
        # 450 * 2.0 (expert) * 1.8 (extreme) * 1.15 (specialty)
        assert calculate_item_cost("piano", 1, 15, False) == 1863

    def test_chair_has_no_multipliers(self):
        assert calculate_item_cost("chair") == 25

    def test_quantity_scales_before_rounding(self):
        # 85 * 3 * 1.2 * 1.3 = 397.8
        assert calculate_item_cost("couch", 3) == 398

    def test_long_haul_multiplier(self):
        assert calculate_item_cost("chair", 1, 500) == 35
        assert calculate_item_cost("chair", 1, 50) == 25

    def test_commercial_multiplier(self):
        assert calculate_item_cost("chair", 4, 15, True) == 125

    @pytest.mark.parametrize("label", ["spaceship", "zzz-widget", "", "   ", "TOTALLY UNKNOWN"])
    def test_unknown_items_fall_back_to_positive_integer(self, label):
        cost = calculate_item_cost(label)
        assert isinstance(cost, int)
        assert cost > 0

    def test_lookup_is_case_insensitive(self):
        assert lookup_item("  Refrigerator ") == ITEM_CATALOG["refrigerator"]

    def test_lookup_substring_match(self):
        assert lookup_item("grand piano") == ITEM_CATALOG["piano"]

    def test_lookup_fallback(self):
        assert lookup_item("spaceship") == ITEM_CATALOG["item"]

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(2.49) == 2


@pytest.mark.pricing
class TestQuoteTotal:

    def test_size_base_price_without_items(self):
        # 950 (2br) + 150 setup, Wednesday in November
        assert calculate_total_quote(_details()) == 1100

    def test_items_replace_size_base_price(self):
        breakdown = get_pricing_breakdown(_details(), [ItemLine("chair", 2)])
        assert breakdown.size_base_price is None
        assert breakdown.items_total == 50
        assert breakdown.total == 200

    def test_unknown_size_uses_default(self):
        assert calculate_total_quote(_details(estimated_size=None)) == 950

    def test_june_costs_more_than_november(self):
        june = calculate_total_quote(_details(move_date=date(2025, 6, 11)))
        november = calculate_total_quote(_details(move_date=date(2025, 11, 12)))
        assert june > november

    def test_seasonal_multipliers_stack(self):
        # Saturday 2025-05-31: peak, weekend and month end
        breakdown = get_pricing_breakdown(_details(move_date=date(2025, 5, 31)))
        names = [adj.name for adj in breakdown.seasonal_adjustments]
        assert names == ["peak_season", "weekend", "month_end"]
        assert breakdown.total == round_half_up(1100 * 1.25 * 1.15 * 1.1)

    def test_downtown_surcharge(self):
        breakdown = get_pricing_breakdown(_details(from_address="200 Congress Ave, Downtown Austin"))
        assert [adj.name for adj in breakdown.location_adjustments] == ["downtown"]
        assert breakdown.total == round_half_up(1100 * 1.25 + 85)

    def test_easy_access_discount(self):
        total = calculate_total_quote(_details(to_address="Round Rock, TX"))
        assert total == 1045

    def test_long_distance_setup_fee(self):
        breakdown = get_pricing_breakdown(_details(move_type=MoveType.LONG_DISTANCE))
        assert breakdown.setup_fee == 350

    def test_breakdown_matches_total(self):
        breakdown = get_pricing_breakdown(
            _details(move_date=date(2025, 7, 5), from_address="Westlake Hills"),
            [ItemLine("piano"), ItemLine("couch", 2)],
        )
        cost = breakdown.subtotal
        for adj in breakdown.location_adjustments + breakdown.seasonal_adjustments:
            cost = cost * adj.multiplier + adj.surcharge
        assert breakdown.total == round_half_up(cost)
        assert breakdown.subtotal == breakdown.items_total + breakdown.setup_fee

    @pytest.mark.parametrize("move_type", list(MoveType))
    @pytest.mark.parametrize("size", list(HomeSize))
    def test_total_is_non_negative_integer(self, move_type, size):
        total = calculate_total_quote(
            _details(move_type=move_type, estimated_size=size, move_date=date(2025, 8, 30))
        )
        assert isinstance(total, int)
        assert total >= 0

    def test_missing_date_skips_seasonal(self):
        breakdown = get_pricing_breakdown(_details(move_date=None))
        assert breakdown.seasonal_adjustments == []


@pytest.mark.pricing
class TestDurationAndTips:

    def test_local_duration(self):
        duration = estimate_move_duration([ItemLine("couch"), ItemLine("piano")], 15, MoveType.LOCAL)
        # 2 base + 1 for items + 0.5 for the piano
        assert duration.estimated_hours == 3.5
        assert duration.travel == 0

    def test_long_distance_travel(self):
        duration = estimate_move_duration([], 500, MoveType.LONG_DISTANCE)
        assert duration.travel == 24
        assert duration.estimated_hours == 28

    def test_crew_cost(self):
        duration = estimate_move_duration([], 500, MoveType.LONG_DISTANCE)
        crew = estimate_crew_cost(duration, MoveType.LONG_DISTANCE, 500, extra_movers=1)
        assert crew.movers == 3
        assert crew.hourly_rate == 165
        assert crew.labor_cost == 28 * 165
        assert crew.truck_cost == 725

    def test_tips_for_specialty_and_appliances(self):
        tips = get_moving_tips([ItemLine("piano"), ItemLine("refrigerator")])
        assert len(tips) == 5
        assert any("Specialty" in tip for tip in tips)
        assert any("Appliances" in tip for tip in tips)

    def test_general_tips_only(self):
        assert len(get_moving_tips([ItemLine("chair")])) == 3
