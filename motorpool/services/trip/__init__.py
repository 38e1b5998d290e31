from motorpool.services.trip.trip_request_workflow import TRIP_TRANSITIONS, TripRequestWorkflow

__all__ = ["TRIP_TRANSITIONS", "TripRequestWorkflow"]
