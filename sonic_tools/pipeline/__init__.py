"""
This package contains the request pipeline of Sonic Tools.

A pipeline runs one operation over a batch of files and turns its results into
a single response, bundling several outputs into one zip archive.
"""
