# Services package init
"""
FlightLog Backend: Services Layer
==================================

What:  Business logic sitting between routes (HTTP) and the database.

Service Inventory:
    - PlaceProvider (abstract): Contract for the external place service
    - PlacesClient: Google Places API v1 implementation (detail + photo media)
    - PhotoResolver: Concurrent photo reference → URL fan-out with timeout
    - place_normalizer: Payload → PlaceDetails mapping (pure functions)
    - PlaceRepository: Write-once place store keyed by external id
    - PlaceService: Cache-aside orchestrator (the public entry point)
    - AirportService: Read-only airport listing
"""
