# SmartPark — Database Models
# Import all models here for SQLAlchemy discovery

from smartpark.models.parking_space import ParkingSpace                 # noqa
from smartpark.models.space_status_history import SpaceStatusHistory    # noqa
from smartpark.models.parking_session import ParkingSession             # noqa
from smartpark.models.alert import Alert                                # noqa
