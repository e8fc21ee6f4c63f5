"""Seed sensors and particulate parameters for the simulated feed."""

# Deployed sensors for the simulated feed: source -> (sensor model, latitude, longitude)
SEED_SENSORS: dict[str, tuple[str, float, float]] = {
    "asu-centro-01": ("PMS5003", -25.2820, -57.6351),
    "asu-recoleta-02": ("PMS5003", -25.2937, -57.6053),
    "asu-sajonia-03": ("PMS7003", -25.2986, -57.6530),
    "lambare-01": ("SPS30", -25.3468, -57.6065),
    "luque-01": ("PMS7003", -25.2670, -57.4872),
    "san-lorenzo-01": ("SPS30", -25.3397, -57.5089),
    "fdo-mora-01": ("PMS5003", -25.3270, -57.5470),
    "mra-01": ("SDS011", -25.2890, -57.5760),
}

# Typical PM2.5 baseline per source in ug/m3 (dense traffic areas run higher)
BASELINE_PM2_5: dict[str, float] = {
    "asu-centro-01": 24.0,
    "asu-recoleta-02": 18.0,
    "asu-sajonia-03": 21.0,
    "lambare-01": 12.0,
    "luque-01": 15.0,
    "san-lorenzo-01": 27.0,  # Bus terminal nearby
    "fdo-mora-01": 16.0,
    "mra-01": 14.0,
}

# Baseline for sources not listed above
DEFAULT_PM2_5 = 15.0

# Ratios to PM2.5 used to derive the other size fractions
PM1_0_RATIO = 0.68
PM10_RATIO = 1.45

# Random walk parameters (per poll step, in log space)
REVERSION_RATE = 0.05  # Pull toward the baseline
VOLATILITY = 0.08

# Probability that a sensor has a fresh reading on any given poll
REPORT_PROBABILITY = 0.3
