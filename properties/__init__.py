"""
Properties app for the Vitrine platform.

This app manages broker profiles, listings and listing photos, and serves
the public portal where visitors browse a broker's active listings.
"""
