"""PetrolMate fuel price crawler"""
