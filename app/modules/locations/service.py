import logging
from typing import List

from sqlalchemy.orm import Session, joinedload

from app.common.dates import as_utc
from app.modules.auth.models import User
from app.modules.locations.models import UserLocation
from app.modules.locations.schemas import LocationReport

logger = logging.getLogger(__name__)


class LocationService:
    def __init__(self, db: Session):
        self.db = db

    def report(self, user: User, data: LocationReport) -> UserLocation:
        """Crea o reemplaza la última ubicación del usuario"""
        location = self.db.query(UserLocation).filter(UserLocation.user_id == user.id).first()
        if location is None:
            location = UserLocation(user_id=user.id)
            self.db.add(location)

        values = data.model_dump()
        values["recorded_at"] = as_utc(values["recorded_at"])
        for field, value in values.items():
            setattr(location, field, value)

        self.db.commit()
        self.db.refresh(location)
        logger.debug(f"Ubicación de {user.id}: {location.latitude},{location.longitude}")
        return location

    def latest(self) -> List[UserLocation]:
        return (
            self.db.query(UserLocation)
            .options(joinedload(UserLocation.user))
            .order_by(UserLocation.updated_at.desc())
            .all()
        )
