GRID_ROWS = 8
GRID_COLS = 8

# Number of colored tile kinds; kinds are numbered 1..PALETTE_SIZE.
PALETTE_SIZE = 5

# Shortest run that counts as a match.
MIN_RUN = 3

# Upper bound on full-board regeneration attempts (seeding and stalemate reset).
RESPAWN_ATTEMPTS = 200
