#!/usr/bin/env python3
"""Profile xmlpull to find performance bottlenecks."""

import cProfile
import io
import pstats

from xmlpull import EntityIterator

# Sample XML
xml = "<?xml version='1.0' encoding='UTF-8'?><catalog>" + """
    <book id="bk101" available lang="en">
        <author>Gambardella, Matthew</author>
        <title>XML Developer&apos;s Guide</title>
        <price currency='EUR'>44.95</price>
        <!-- reviewed -->
        <description><![CDATA[An in-depth look at <xml> & friends]]></description>
        <cover/>
    </book>""" * 1000 + "</catalog>"

# Profile
pr = cProfile.Profile()
pr.enable()

for _ in range(10):
    iterator = EntityIterator(xml)
    while iterator.advance():
        pass

pr.disable()

# Print stats
s = io.StringIO()
ps = pstats.Stats(pr, stream=s).sort_stats("cumulative")
ps.print_stats(50)  # Top 50 functions
print(s.getvalue())
