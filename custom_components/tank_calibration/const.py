DOMAIN = "tank_calibration"

CONF_FILE_BASE = "file_base"
CONF_SHAPE = "shape"
CONF_DIAMETER = "diameter_mm"
CONF_TOTAL_HEIGHT = "total_height_mm"
CONF_LENGTH = "length_mm"
CONF_WIDTH = "width_mm"

SHAPE_VERTICAL = "vertical"
SHAPE_HORIZONTAL = "horizontal"
SHAPE_RECTANGULAR = "rectangular"
SHAPES = [SHAPE_VERTICAL, SHAPE_HORIZONTAL, SHAPE_RECTANGULAR]

# Dimensions each shape needs, in form order
SHAPE_DIMENSIONS = {
    SHAPE_VERTICAL: (CONF_DIAMETER, CONF_TOTAL_HEIGHT),
    SHAPE_HORIZONTAL: (CONF_DIAMETER, CONF_LENGTH),
    SHAPE_RECTANGULAR: (CONF_LENGTH, CONF_WIDTH, CONF_TOTAL_HEIGHT),
}

DEFAULT_FILE_BASE = "calibration"
DEFAULT_SHAPE = SHAPE_VERTICAL
DEFAULT_DIMENSIONS = {
    CONF_DIAMETER: 3000,  # mm
    CONF_TOTAL_HEIGHT: 6000,  # mm
    CONF_LENGTH: 8000,  # mm
    CONF_WIDTH: 2500,  # mm
}
MAX_DIMENSION_MM = 100000

# Volume/height table
DEFAULT_TABLE_STEP = 2500  # Liters
MIN_TABLE_STEP = 1  # Liters
MAX_TABLE_ROWS = 100000

# Horizontal cylinder bisection
BISECTION_MAX_ITERATIONS = 60
BISECTION_VOLUME_TOLERANCE = 0.01  # Liters
BISECTION_HEIGHT_TOLERANCE = 0.1  # mm
FULL_TANK_TOLERANCE = 1e-9  # meters

LITERS_PER_CUBIC_METER = 1000.0
MM_PER_METER = 1000.0

# Text rendering
CSV_HEADER = "Volume (L);Altura (mm)"
CSV_SEPARATOR = ";"

# Services
SERVICE_CALCULATE_HEIGHT = "calculate_height"
SERVICE_GENERATE_TABLE = "generate_table"
SERVICE_SAVE_CALIBRATION = "save_calibration"
SERVICE_EXPORT_CALIBRATIONS = "export_calibrations"
SERVICE_DIAMETER_FROM_PERIMETER = "diameter_from_perimeter"

ATTR_ENTRY_ID = "entry_id"
ATTR_VOLUME = "volume"
ATTR_HEIGHT = "height"
ATTR_STEP = "step"
ATTR_PRODUCT_HEIGHT = "product_height"
ATTR_SENSOR_DISTANCE = "sensor_distance"
ATTR_USEFUL_HEIGHT = "useful_height"
ATTR_USEFUL_VOLUME = "useful_volume"
ATTR_METER_CODE = "meter_code"
ATTR_PERIMETER = "perimeter"
ATTR_DIAMETER = "diameter"
ATTR_APPLY = "apply"
