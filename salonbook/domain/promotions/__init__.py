"""Promotions domain - salon discount codes and their usage"""
