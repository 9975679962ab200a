"""Domain packages - one per back-office module"""
