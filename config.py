"""Central configuration for exam-sheet marker reading.

All tunable parameters are defined here with descriptive names.
Functions that use them accept keyword overrides, so experiments never need
to edit this file.

The localization constants (acceptance density, window ladder, step rule)
are hand-tuned. Changing them silently shifts detection recall/precision.
"""

# =============================================================================
# SOURCE NORMALIZATION
# =============================================================================

# Luminance percentiles stretched to 0..255 during contrast normalization
NORMALIZE_PERCENTILES = (1.0, 99.0)

# =============================================================================
# DECODE ATTEMPTS
# =============================================================================

# Binarization threshold for decode attempts (pixels below become black)
DECODE_THRESHOLD = 160

# Width cap for the full-image binarized attempts (0 = keep source width)
HIGH_RES_MAX_WIDTH = 2400

# Expected marker quadrant as fractions of the upright image (left, top, width, height).
# Sheets print the marker in the top-right corner.
CORNER_CROP = (0.6, 0.0, 0.4, 0.35)

# Upscale applied to the corner crop's extra sharpened attempt
CORNER_UPSCALE = 2.0

# Upscale applied to attempts seeded by the located region
LOCATED_UPSCALE = 2.0

# =============================================================================
# REGION SEARCH
# =============================================================================

# Area searched for the marker, as fractions of the upright image
# (left, top, width, height): right half, top 45%
SEARCH_AREA = (0.5, 0.0, 0.5, 0.45)

# Width the search area is downscaled to before building the integral image
SEARCH_WIDTH = 420

# Binarization threshold for the search variant (darker than this = foreground)
SEARCH_THRESHOLD = 140

# Square window sizes tried, in search-image pixels (ascending)
SEARCH_WINDOW_SIZES = (110, 130, 150, 170)

# Window step is max(SEARCH_MIN_STEP, size // SEARCH_STEP_DIVISOR)
SEARCH_MIN_STEP = 4
SEARCH_STEP_DIVISOR = 8

# Minimum foreground density for a window to be reported as the marker
REGION_ACCEPT_DENSITY = 0.15

# Margin added on each side of a located region (fraction of its size)
REGION_MARGIN_RATIO = 0.15

# =============================================================================
# DECODER
# =============================================================================

# Marker decoder backend (see decoding.backend)
MARKER_DECODER = "opencv_qr"

# Worker threads preparing attempt images (1 = sequential, region search on demand)
DECODE_WORKERS = 4

# =============================================================================
# CLI
# =============================================================================

# Directory read when no source is given
DEFAULT_SAMPLES_DIR = "omr_samples"

# Image files picked up from a directory (compared case-insensitively)
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png")

# Printed in place of a value when no marker was decoded
NOT_FOUND_PLACEHOLDER = "-"
