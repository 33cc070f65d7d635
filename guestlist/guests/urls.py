RSVP_VIEW_URL = "/rsvp/view"
RSVP_SUBMIT_URL = "/rsvp/submit"
