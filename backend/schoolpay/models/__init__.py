from .school import School  # noqa: F401
from .user import User  # noqa: F401
from .student import Student  # noqa: F401
from .fee_item import FeeItem  # noqa: F401
from .fee_payment import FeePayment  # noqa: F401

from .payment_transaction import PaymentTransaction  # noqa: F401
from .platform import PlatformRevenue, PlatformConfiguration  # noqa: F401

from .arrear import StudentArrear, StudentPromotion  # noqa: F401

from .audit_log import AuditLog  # noqa: F401
