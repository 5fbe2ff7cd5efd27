from typing import Dict

BASELINE_WINDOWS = ('velocity_7d', 'velocity_30d', 'velocity_90d', 'blended')
SAFETY_STOCK_METHODS = ('days', 'service_level')
ALLOCATION_POLICIES = ('greedy', 'proportional')


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_forecast_config(config) -> Dict[str, str]:
    """Validate a forecast configuration.

    Args:
        config: ForecastConfig to validate

    Returns:
        Dictionary with validation errors
    """
    errors = {}

    if not _is_number(config.lead_time_days_default) or config.lead_time_days_default <= 0:
        errors['lead_time_days_default'] = 'Lead time must be greater than zero'

    if not _is_number(config.safety_stock_days_default) or config.safety_stock_days_default < 0:
        errors['safety_stock_days_default'] = 'Safety stock days cannot be negative'

    if config.fba_capacity is not None and (not _is_number(config.fba_capacity) or config.fba_capacity < 0):
        errors['fba_capacity'] = 'FBA capacity cannot be negative'

    if not _is_number(config.fba_target_days) or config.fba_target_days < 0:
        errors['fba_target_days'] = 'FBA target days cannot be negative'

    if config.round_to_nearest is not None and (
            not isinstance(config.round_to_nearest, int) or config.round_to_nearest <= 0):
        errors['round_to_nearest'] = 'Rounding unit must be a positive integer'

    if not _is_number(config.urgency_threshold_days) or config.urgency_threshold_days < 0:
        errors['urgency_threshold_days'] = 'Urgency threshold cannot be negative'

    if not _is_number(config.seasonality_lookahead_days) or config.seasonality_lookahead_days < 0:
        errors['seasonality_lookahead_days'] = 'Seasonality lookahead cannot be negative'

    if not (_is_number(config.trend_declining_ratio) and _is_number(config.trend_rising_ratio)
            and 0 < config.trend_declining_ratio <= config.trend_rising_ratio):
        errors['trend_ratios'] = 'Declining ratio must be positive and not above the rising ratio'

    if config.baseline_window not in BASELINE_WINDOWS:
        errors['baseline_window'] = f"Baseline window must be one of {', '.join(BASELINE_WINDOWS)}"

    if not isinstance(config.min_history_days, int) or config.min_history_days <= 0:
        errors['min_history_days'] = 'Minimum history days must be a positive integer'

    if not (_is_number(config.volatility_tolerance) and 0 <= config.volatility_tolerance < 1):
        errors['volatility_tolerance'] = 'Volatility tolerance must be in [0, 1)'

    if not (_is_number(config.volatility_weight) and 0 <= config.volatility_weight <= 1):
        errors['volatility_weight'] = 'Volatility weight must be in [0, 1]'

    if config.safety_stock_method not in SAFETY_STOCK_METHODS:
        errors['safety_stock_method'] = f"Safety stock method must be one of {', '.join(SAFETY_STOCK_METHODS)}"

    if not (_is_number(config.service_level) and 50.0 <= config.service_level < 100.0):
        errors['service_level'] = 'Service level must be a percentage between 50 and 100'

    if config.allocation_policy not in ALLOCATION_POLICIES:
        errors['allocation_policy'] = f"Allocation policy must be one of {', '.join(ALLOCATION_POLICIES)}"

    if not _is_number(config.spike_threshold_pct) or config.spike_threshold_pct <= 0:
        errors['spike_threshold_pct'] = 'Spike threshold must be greater than zero'

    if not isinstance(config.max_workers, int) or config.max_workers < 1:
        errors['max_workers'] = 'Worker count must be at least 1'

    return errors


def validate_sku_policy(policy) -> Dict[str, str]:
    """Validate per-SKU supplier settings.

    Args:
        policy: SkuPolicy to validate

    Returns:
        Dictionary with validation errors
    """
    errors = {}

    if not policy.sku:
        errors['sku'] = 'SKU is required'

    for name in ('lead_time_days', 'observed_lead_time_days'):
        value = getattr(policy, name)
        if value is not None and value <= 0:
            errors[name] = 'Lead time must be greater than zero'

    if policy.safety_stock_days is not None and policy.safety_stock_days < 0:
        errors['safety_stock_days'] = 'Safety stock days cannot be negative'

    if policy.lead_time_std_dev is not None and policy.lead_time_std_dev < 0:
        errors['lead_time_std_dev'] = 'Lead time deviation cannot be negative'

    if policy.moq is not None and policy.moq < 0:
        errors['moq'] = 'Minimum order quantity cannot be negative'

    return errors


def validate_planned_spike(spike) -> Dict[str, str]:
    """Validate a planned SKU lift.

    Args:
        spike: PlannedSpike to validate

    Returns:
        Dictionary with validation errors
    """
    errors = {}

    if not spike.sku:
        errors['sku'] = 'SKU is required'

    if not _is_number(spike.lift_multiplier) or spike.lift_multiplier <= 0:
        errors['lift_multiplier'] = 'Lift multiplier must be greater than zero'

    if spike.end_date < spike.start_date:
        errors['end_date'] = 'End date is before start date'

    return errors


def validate_snapshot(snapshot) -> Dict[str, str]:
    """Validate an inventory snapshot.

    Args:
        snapshot: InventorySnapshot to validate

    Returns:
        Dictionary with validation errors
    """
    errors = {}

    for name in ('warehouse_available', 'fba_available', 'fba_inbound', 'incoming_from_po'):
        value = getattr(snapshot, name)
        if value is None:
            errors[name] = 'Quantity is missing'
        elif value < 0:
            errors[name] = f'Negative quantity ({value})'

    return errors
