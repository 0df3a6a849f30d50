"""Core application for the MedRefer backend.

This package contains models, services, serializers, views and route
registrations backing the MedRefer AI mobile client.
"""
