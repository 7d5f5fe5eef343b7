# ParkPay Database Models
# Import all models here for SQLAlchemy discovery

from parkpay.models.ticket import Ticket                     # noqa
from parkpay.models.car import Car                           # noqa
from parkpay.models.payment import Payment                   # noqa
from parkpay.models.car_history import CarHistory            # noqa
from parkpay.models.company_settings import CompanySettings  # noqa
from parkpay.models.staff import Staff                       # noqa
from parkpay.models.bank import Bank                         # noqa
