"""Fixed tuning values for the Meteor Crash duel. Not configurable."""

METEOR_COUNT = 3
TICK_MS = 250

# Starting time budgets: the first target gets 7:00, the other side 6:30
HP_FIRST_MS = 7 * 60 * 1000
HP_SECOND_MS = 6 * 60 * 1000 + 30 * 1000

# Direct hit (countdown ran out)
HIT_PENALTY_MS = 30000

# Center to ship; also the travel time after a direct hit
CENTER_MS = 30000
SHIP_TO_SHIP_MS = CENTER_MS * 2
MIN_RETURN_MS = 1000

# Only the three opening meteors use this
OPENING_MS = 45000

ANSWER_COOLDOWN_MS = 150

# Extra loss per tick for a side with 2+ incoming meteors
MULTI_INCOMING_DRAIN_MS_PER_TICK = TICK_MS
MULTI_INCOMING_THRESHOLD = 2

DEFAULT_PLAYER_NAME = 'Player'
