"""Database access for mission templates, instances and tracking aggregates"""
