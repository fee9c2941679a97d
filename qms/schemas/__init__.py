"""
QMS API Schemas
Request and response models for every resource
"""
