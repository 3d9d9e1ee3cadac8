from bathroom_scheduler.models.user import User
from bathroom_scheduler.models.booking import Booking

__all__ = ['User', 'Booking']
