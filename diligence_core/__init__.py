"""Exchange transaction import and case risk scoring"""
