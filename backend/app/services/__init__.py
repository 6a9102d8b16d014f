# Services package init
"""
Places Backend: Services Layer
================================

Service Inventory:
    - PlaceService: place reads, and the create/delete protocol that keeps
      places and their creators' place lists consistent
    - UserService: user listing and sign-up
    - Geocoder (abstract): address → coordinates contract
    - StaticGeocoder / GoogleGeocoder: concrete geocoders
"""
