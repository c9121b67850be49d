"""Telemedicine API package"""
