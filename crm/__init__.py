"""
CRM app for the Vitrine platform.

Premium brokers track leads, deals and closed transactions here. Leads
also arrive from the public portal through the WhatsApp call to action.
"""
