#!/usr/bin/env python3
"""Profile TagRewriter to find performance bottlenecks."""

import cProfile
import io
import pstats

from tagrewriter import Drop, SetAttrs, TagRewriter

# Sample HTML
html = """
<!DOCTYPE html>
<html>
<head><title>Test</title><esi:include src="/head" /></head>
<body>
    <div class="container">
        <esi:try><esi:attempt><esi:include src="/nav?a=1&b=2" /></esi:attempt>
        <esi:except><p>Navigation unavailable</p></esi:except></esi:try>
        <p>Paragraph 1 <a href="/one">one</a></p>
        <p>Paragraph 2 <img src="/two.png"></p>
        <table>
            <tr><td>Cell 1</td><td>Cell 2</td></tr>
            <tr><td><esi:vars>$(HTTP_HOST)</esi:vars></td><td>Cell 4</td></tr>
        </table>
        <script>track()</script>
    </div>
</body>
</html>
""" * 100  # Repeat for more meaningful results

rewriter = TagRewriter([
    SetAttrs("//html:img", loading="lazy"),
    SetAttrs("//html:a", rel="noopener"),
    Drop("//html:script"),
])

# Profile
pr = cProfile.Profile()
pr.enable()

for _ in range(10):
    _ = rewriter.process(html)

pr.disable()

# Print stats
s = io.StringIO()
ps = pstats.Stats(pr, stream=s).sort_stats("cumulative")
ps.print_stats(50)  # Top 50 functions
print(s.getvalue())
