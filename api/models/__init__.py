# Models package - import all models so Base.metadata sees every table
from models.organization import Organization
from models.user import User, RoleEnum

__all__ = ['User', 'RoleEnum', 'Organization']
