"""Ward supply application.

This package contains the models, stores, services, views and realtime
consumers that allocate stock between hospital locations and track the
transfer tasks porters carry out.
"""
