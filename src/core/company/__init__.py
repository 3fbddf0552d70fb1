from src.core.company.models import Company
from src.core.company.service import get_company, get_company_by_id

__all__ = ["Company", "get_company", "get_company_by_id"]
