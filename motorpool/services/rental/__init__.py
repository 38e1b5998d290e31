from motorpool.services.rental.rental_company_service import RentalCompanyService

__all__ = ["RentalCompanyService"]
