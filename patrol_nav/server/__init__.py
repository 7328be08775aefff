"""Patrol Nav daemon and REST API"""
