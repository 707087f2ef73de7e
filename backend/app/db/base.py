# Import all the models, so that Base has them before being
# imported by Alembic or create_all
from app.db.base_class import Base  # noqa

from app.models.company import Company  # noqa
from app.models.employee import Employee  # noqa
from app.models.bonus import Bonus  # noqa
from app.models.payment import PaymentRecord  # noqa
from app.models.ens_record import EnsRecord  # noqa
