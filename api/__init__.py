"""HTTP API for bookings, calendar, contact form and admin reporting."""
