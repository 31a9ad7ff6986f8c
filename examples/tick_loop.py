from verso import Dynamic, into_consumer

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Polling a single cell")
print("-" * 100)
print()

# A Dynamic holds a value and counts how often it changed.
temperature = Dynamic(20)

# A consumer remembers which version it has already seen.
display = into_consumer(temperature)

display.on_change(lambda t: print(f"Temperature is {t}"))  # First poll always fires
display.on_change(lambda t: print(f"Temperature is {t}"))  # Nothing changed, nothing printed

temperature.set(20)  # Equal value, the version does not move
display.on_change(lambda t: print(f"Temperature is {t}"))  # Still nothing

temperature.set(21)
display.on_change(lambda t: print(f"Temperature is {t}"))  # Prints 21

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Polling several cells as one")
print("-" * 100)
print()

width = Dynamic(2)
height = Dynamic(3)
area = Dynamic(0)


# The callback receives every value of the group, even the ones that did not change.
def recompute_area(w, h):
    print(f"Recomputing area for {w} x {h}")
    area.set(w * h)


size = into_consumer((width, height))
area_display = into_consumer(area)

# A host update loop: mutate some inputs, then poll every consumer once per tick.
script = {
    1: lambda: width.set(4),
    2: lambda: height.set(3),  # no-op
    3: lambda: (width.set(3), height.set(4)),  # area stays 12
}

for tick in range(5):
    if tick in script:
        script[tick]()
    size.on_change(recompute_area)
    area_display.on_change(lambda a: print(f"  tick {tick}: area is {a}"))

# ------------------------------------------------------------------------------------------------

print()
print("=" * 100)
print("Mutating in place")
print("-" * 100)
print()

log = Dynamic([])
log_display = into_consumer(log)


# update_inplace skips the equality check; the callback says whether it changed anything.
def append_entry(ref):
    ref.value.append("started")
    return True


log.update_inplace(append_entry)
log_display.on_change(lambda entries: print(f"Log: {entries}"))
