# core/constants.py

# Map extent (metres). Origin top-left, +x East, +y down the screen (South).
MAP_WIDTH  = 1000.0
MAP_HEIGHT = 1000.0

# Scheduler
SIMULATION_TICK_MS = 100                      # fixed tick interval
TICK_DT_S          = SIMULATION_TICK_MS / 1000.0

# Battery drain per tick at x1 speed (percent)
PRIMARY_DRAIN_PER_TICK  = 0.05                # ≈ 3.3 min endurance at x1
FRIENDLY_DRAIN_PER_TICK = 0.005               # 10x slower
BATTERY_MIN = 0.0
BATTERY_MAX = 100.0

# Primary drone sensor noise
ALTITUDE_JITTER_M = 0.5
ALTITUDE_MIN_M    = 80.0
ALTITUDE_MAX_M    = 130.0
SIGNAL_JITTER_DBM = 1.0
SIGNAL_MIN_DBM    = -85.0
SIGNAL_MAX_DBM    = -50.0

# Breach detection
APPROACH_BAND_FACTOR = 1.5                    # "approaching" inside 1.5 x radius

# Speed multipliers offered to the operator
SPEED_OPTIONS = (0.5, 1.0, 2.0, 5.0)
