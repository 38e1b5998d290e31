"""
Rental company directory. Only active companies fulfil rental trips.
"""

from typing import Any, Dict, List, Optional, Union

from sqlalchemy.orm import Session

from motorpool.core.events import EventBus
from motorpool.core.exceptions import DuplicateEntryError
from motorpool.models.trip import RentalCompany
from motorpool.repositories.trip import RentalCompanyRepository
from motorpool.schemas.common import ActorContext
from motorpool.schemas.trip import RentalCompanyCreate
from motorpool.services.base import BaseService, ServiceResult

ENTITY = "RentalCompany"


class RentalCompanyService(BaseService[RentalCompany, RentalCompanyRepository]):

    def __init__(self, db_session: Session, bus: Optional[EventBus] = None):
        super().__init__(RentalCompanyRepository(db_session), db_session, bus)

    def create(
        self,
        data: Union[RentalCompanyCreate, Dict[str, Any]],
        actor: Union[ActorContext, Dict[str, Any]],
    ) -> ServiceResult[RentalCompany]:
        """Register a company; names are unique among active companies."""
        try:
            actor = self._actor(actor)
            params = self._validate_input(RentalCompanyCreate, data)

            with self.transaction():
                if self.repository.find_active_by_name(params.name) is not None:
                    raise DuplicateEntryError(
                        "An active rental company with this name already exists", field="name", value=params.name
                    )
                company = self.repository.create(RentalCompany(is_active=True, **params.model_dump()))
                self._audit("CREATE", ENTITY, company.id, actor, {"name": company.name})

            self._log_operation("Rental company created", company.id, {"company_name": company.name})
            return ServiceResult.success(company, message="Rental company created")
        except Exception as e:
            return self._handle_exception(e, "create rental company")

    def get(self, company_id: Any) -> ServiceResult[RentalCompany]:
        try:
            return ServiceResult.success(self.repository.get_by_id(company_id))
        except Exception as e:
            return self._handle_exception(e, "get rental company", company_id)

    def list(self, include_inactive: bool = False) -> ServiceResult[List[RentalCompany]]:
        try:
            companies = self.repository.list_companies(include_inactive=include_inactive)
            return ServiceResult.success(companies, metadata={"count": len(companies)})
        except Exception as e:
            return self._handle_exception(e, "list rental companies")

    def deactivate(
        self,
        company_id: Any,
        actor: Union[ActorContext, Dict[str, Any]],
    ) -> ServiceResult[RentalCompany]:
        """Stop offering a company for new rentals. Idempotent."""
        try:
            actor = self._actor(actor)
            with self.transaction():
                company = self.repository.get_by_id(company_id)
                if company.is_active:
                    self.repository.update(company, {"is_active": False})
                    self._audit("DEACTIVATE", ENTITY, company.id, actor)

            self._log_operation("Rental company deactivated", company.id)
            return ServiceResult.success(company, message="Rental company deactivated")
        except Exception as e:
            return self._handle_exception(e, "deactivate rental company", company_id)
