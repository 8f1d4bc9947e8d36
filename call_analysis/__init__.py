"""
Post-call AI analysis for sales calls.

Turns a call transcript into an outcome, coaching scores, a summary and a
list of objections, using a shared master prompt plus per-client
instructions, and writes the results back to the call.
"""
