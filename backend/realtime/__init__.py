"""
Realtime app for pushing scheduled ride events over WebSockets.

This app provides:
- A WebSocket consumer that receives reminders and booking confirmations
- The "app resumed" trigger that runs a reconciliation pass
- JWT/Cookie authentication middleware for WebSocket connections

Usage:
    from realtime.consumers import ScheduledRideConsumer
    from realtime.notifications import notify_scheduled_ride_event
"""
