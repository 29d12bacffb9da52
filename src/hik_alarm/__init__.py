"""
HikVision alarm check package.

This package keeps live motion-alarm state for a set of HikVision cameras:
- holds one alert-stream connection per camera (one thread each)
- frames and decodes the <EventNotificationAlert> XML pushed by the camera
- reports status changes to a device host
- exposes status + camera management over a small HTTP API
"""
