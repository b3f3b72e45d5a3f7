"""Reviews domain - client reviews and salon rating aggregation"""
