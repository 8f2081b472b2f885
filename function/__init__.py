"""Composition function that allows published IPv4 ranges through an Azure NSG."""
