# EcoSmart Waste Database Models
# Import all models here for SQLAlchemy discovery

from app.models.district import District                        # noqa
from app.models.user import User                                # noqa
from app.models.zone import Zone                                # noqa
from app.models.waste_report import WasteReport                 # noqa
from app.models.report_action import ReportAction               # noqa
from app.models.collection_schedule import CollectionSchedule   # noqa
from app.models.achievement import Achievement, UserAchievement  # noqa
from app.models.notification import UserNotification            # noqa
