"""Payments domain - commission engine, booking payments and Stripe integration"""
