"""Instruction-level simulator for a subset of ARMv8, with a command shell."""