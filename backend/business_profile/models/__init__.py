"""ORM Models — SQLAlchemy declarative models for every record the editor touches.

Invariants:
    - All models inherit from Base (db/base.py)
    - Company is the aggregate root; every other table except profiles is scoped by
      company_id
    - Singleton tables carry a unique constraint on company_id; that constraint is what
      makes concurrent lazy creation idempotent

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all/alembic run
    - ORM_MODELS maps each ResourceType to its table; the SQL store never guesses
"""

from business_profile.core.domain_types import ResourceType
from business_profile.models.company import Company
from business_profile.models.profile import Profile
from business_profile.models.company_member import CompanyMember
from business_profile.models.strategy import CompanyStrategy
from business_profile.models.branding import CompanyBranding
from business_profile.models.schedule_config import CompanyScheduleConfig
from business_profile.models.communication_settings import CompanyCommunicationSettings
from business_profile.models.email_config import CompanyEmailConfig
from business_profile.models.objective import CompanyObjective
from business_profile.models.product import CompanyProduct
from business_profile.models.competitor import CompanyCompetitor
from business_profile.models.platform_setting import PlatformSetting

ORM_MODELS = {
    ResourceType.COMPANY: Company,
    ResourceType.PROFILE: Profile,
    ResourceType.COMPANY_MEMBER: CompanyMember,
    ResourceType.STRATEGY: CompanyStrategy,
    ResourceType.BRANDING: CompanyBranding,
    ResourceType.SCHEDULE: CompanyScheduleConfig,
    ResourceType.COMMUNICATION: CompanyCommunicationSettings,
    ResourceType.EMAIL_CONFIG: CompanyEmailConfig,
    ResourceType.OBJECTIVE: CompanyObjective,
    ResourceType.PRODUCT: CompanyProduct,
    ResourceType.COMPETITOR: CompanyCompetitor,
    ResourceType.PLATFORM_SETTING: PlatformSetting,
}
