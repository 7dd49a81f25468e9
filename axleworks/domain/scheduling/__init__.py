"""
Scheduling Domain

Appointment booking for service bays. Shares no state with the document
chain except the optional appointment_id carried by a work order.

Structure:
```
axleworks/domain/scheduling/
├── schemas.py              # Appointment and slot schemas
├── repository.py           # Appointment database queries
├── time_calculator.py      # HH:MM parsing, ticks, interval overlap
├── availability_service.py # Free ticks and slot conflicts
├── service.py              # Booking workflow and status changes
└── router.py               # /appointments endpoints
```
"""
