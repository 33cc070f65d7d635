PUBLIC_SEATING_URL = "/weddings/{wedding_id}/seating"
